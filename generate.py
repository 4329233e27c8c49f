#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from src.subgen.config import config_from_dict
from src.subgen.dataio import write_table
from src.subgen.errors import GenerationError
from src.subgen.pipeline import generate_dataset
from src.subgen.utils import ensure_dir, get_logger, make_run_id, read_yaml, set_latest_pointer, write_json, write_yaml

log = get_logger("generate")


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Generate a synthetic subscriber retention dataset.")
    p.add_argument("--config", default=None, help="YAML config; defaults are used when omitted")
    p.add_argument("--n-users", type=int, default=None, help="Override n_users from config")
    p.add_argument("--seed", type=int, default=None, help="Override seed from config")
    p.add_argument("--run-name", default="run")
    p.add_argument("--save-dir", default=None, help="Override artifacts_dir from config")
    p.add_argument("--output-csv", default=None, help="Also write the dataset to this path")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    raw = read_yaml(args.config) if args.config else {}

    try:
        cfg = config_from_dict(raw, n_users=args.n_users, seed=args.seed)
        result = generate_dataset(cfg)
    except GenerationError as e:
        log.error("generate_failed", stage=e.stage, field=e.field, error=e.message)
        return 1

    artifacts_root = str(Path(args.save_dir or raw.get("artifacts_dir", "artifacts/")))
    ensure_dir(artifacts_root)

    run_id = make_run_id(args.run_name)
    run_dir = str(Path(artifacts_root) / run_id)
    ensure_dir(run_dir)

    cfg_lock = cfg.to_dict()
    cfg_lock["resolved"] = {"run_id": run_id, "rows": result.summary["rows"]}

    write_table(result.dataset, str(Path(run_dir) / "dataset.csv"))
    write_json(str(Path(run_dir) / "summary.json"), result.summary)
    write_yaml(str(Path(run_dir) / "config.lock.yaml"), cfg_lock)
    if args.output_csv:
        write_table(result.dataset, args.output_csv)

    set_latest_pointer(artifacts_root, run_dir)

    log.info("generate_done", run_dir=run_dir, rows=result.summary["rows"], renew_rate=result.summary.get("renew_rate"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
