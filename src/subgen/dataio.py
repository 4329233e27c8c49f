from __future__ import annotations

from pathlib import Path
from typing import List

import pandas as pd
import pandera.pandas as pa

from .errors import SamplingError
from .features import FEATURE_COLUMNS, PERCENTILE_COL
from .labels import LABEL_COL, PROB_COL
from .utils import ensure_dir, get_logger

log = get_logger("subgen.dataio")

OUTPUT_COLUMNS: List[str] = FEATURE_COLUMNS + [LABEL_COL]
INTERMEDIATE_COLUMNS: List[str] = [PERCENTILE_COL, PROB_COL]


def subscriber_schema(include_intermediate: bool = False) -> pa.DataFrameSchema:
    """
    Pandera schema of the subscriber table (strict and ordered).
    With `include_intermediate` the percentile / renew_prob debug columns
    are expected as well.
    """
    cols = {
        "user_id": pa.Column(
            int,
            pa.Check(lambda s: s.is_monotonic_increasing, error="user_id not increasing"),
            unique=True,
            nullable=False,
        ),
        "subscription_tenure": pa.Column(int, pa.Check.between(1, 72), nullable=False),
        "total_user_sessions": pa.Column(int, pa.Check.between(0, 72), nullable=False),
        "total_duration_min": pa.Column(float, pa.Check.ge(0.0), nullable=False),
        "total_watch_duration_min": pa.Column(float, pa.Check.ge(0.0), nullable=False),
        "total_videos_watched": pa.Column(float, pa.Check.ge(0.0), nullable=False),
        "num_user_subscriptions": pa.Column(int, pa.Check.ge(0), nullable=False),
        "num_liked_videos": pa.Column(int, pa.Check.ge(0), nullable=False),
        "num_comments": pa.Column(int, pa.Check.ge(0), nullable=False),
        "youtube_tv_subscriber": pa.Column(int, pa.Check.isin([0, 1]), nullable=False),
    }
    if include_intermediate:
        cols[PERCENTILE_COL] = pa.Column(float, pa.Check.in_range(0.0, 1.0, include_min=False), nullable=False)
        cols[PROB_COL] = pa.Column(float, pa.Check.between(0.0, 1.0), nullable=False)
    cols[LABEL_COL] = pa.Column(int, pa.Check.isin([0, 1]), nullable=False)

    checks = [
        pa.Check(
            lambda d: d["total_watch_duration_min"] <= d["total_duration_min"],
            error="watch duration exceeds total duration",
        ),
        pa.Check(
            lambda d: (d["num_user_subscriptions"] != 0) | (d["num_comments"] == 0),
            error="comments without subscriptions",
        ),
    ]
    return pa.DataFrameSchema(cols, checks=checks, strict=True, ordered=True)


def validate_subscribers(df: pd.DataFrame, include_intermediate: bool = False) -> None:
    schema = subscriber_schema(include_intermediate=include_intermediate)
    try:
        schema.validate(df, lazy=True)
    except pa.errors.SchemaErrors as e:
        cases = e.failure_cases
        col = str(cases["column"].dropna().iloc[0]) if "column" in cases and cases["column"].notna().any() else None
        raise SamplingError(str(cases.head(50)), stage="output", field=col) from e


def finalize(df: pd.DataFrame) -> pd.DataFrame:
    """Drop intermediate columns and fix the output column order."""
    return df.drop(columns=INTERMEDIATE_COLUMNS, errors="ignore")[OUTPUT_COLUMNS].reset_index(drop=True)


def write_table(df: pd.DataFrame, path: str) -> str:
    ensure_dir(str(Path(path).parent))
    df.to_csv(path, index=False)
    log.info("table_written", path=path, rows=int(df.shape[0]))
    return path


def read_table(path: str) -> pd.DataFrame:
    return pd.read_csv(path)
