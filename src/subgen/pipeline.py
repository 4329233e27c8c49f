from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import pandas as pd

from .config import GenerationConfig, validate_config
from .dataio import finalize, validate_subscribers
from .features import generate_features
from .labels import PROB_COL, assign_labels
from .metrics import dataset_summary
from .utils import get_logger

log = get_logger("subgen.pipeline")


@dataclass
class GenerationResult:
    dataset: pd.DataFrame
    summary: Dict[str, Any]
    config: GenerationConfig


def generate_full(cfg: GenerationConfig) -> pd.DataFrame:
    """Features + labels, including the percentile / renew_prob debug columns."""
    validate_config(cfg)
    df = generate_features(cfg.n_users, cfg.seed, params=cfg.features, user_id_offset=cfg.user_id_offset)
    df = assign_labels(df, cfg.label)
    validate_subscribers(df, include_intermediate=True)
    return df


def generate_dataset(cfg: GenerationConfig) -> GenerationResult:
    """
    Run the whole generation: features, labels, then drop intermediates.
    Any GenerationError aborts the run; nothing partial is returned.
    """
    full = generate_full(cfg)
    dataset = finalize(full)
    validate_subscribers(dataset)
    summary = dataset_summary(dataset, renew_prob=full[PROB_COL].to_numpy())
    log.info("dataset_ready", rows=summary["rows"], renew_rate=summary.get("renew_rate"), seed=cfg.seed)
    return GenerationResult(dataset=dataset, summary=summary, config=cfg)
