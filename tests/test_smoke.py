from pathlib import Path
import tempfile

import pandas as pd
import yaml

import generate as gen_mod
from src.subgen.dataio import OUTPUT_COLUMNS
from src.subgen.utils import read_json, resolve_latest


def test_smoke_generate_run():
    with tempfile.TemporaryDirectory() as td:
        cfg = {
            "seed": 100,
            "n_users": 500,
            "label": {"p0": 0.2},
            "artifacts_dir": str(Path(td) / "artifacts"),
        }
        cfg_path = Path(td) / "cfg.yaml"
        cfg_path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
        out_csv = Path(td) / "out" / "subscribers.csv"

        rc = gen_mod.main(["--config", str(cfg_path), "--run-name", "smoke", "--output-csv", str(out_csv)])
        assert rc == 0

        run_dir = Path(resolve_latest(cfg["artifacts_dir"]))
        assert run_dir.name.endswith("_smoke")
        df = pd.read_csv(run_dir / "dataset.csv")
        assert list(df.columns) == OUTPUT_COLUMNS
        assert len(df) == 500
        assert (run_dir / "config.lock.yaml").exists()
        assert read_json(str(run_dir / "summary.json"))["rows"] == 500
        pd.testing.assert_frame_equal(df, pd.read_csv(out_csv))


def test_cli_overrides_and_failure():
    with tempfile.TemporaryDirectory() as td:
        save_dir = Path(td) / "artifacts"
        rc = gen_mod.main(["--n-users", "5", "--seed", "100", "--save-dir", str(save_dir)])
        assert rc == 0
        df = pd.read_csv(Path(resolve_latest(str(save_dir))) / "dataset.csv")
        assert df["user_id"].tolist() == [1000001, 1000002, 1000003, 1000004, 1000005]

        bad_dir = Path(td) / "bad"
        rc = gen_mod.main(["--n-users", "0", "--save-dir", str(bad_dir)])
        assert rc == 1
        assert not bad_dir.exists()
