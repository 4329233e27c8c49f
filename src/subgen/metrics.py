from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .labels import LABEL_COL, PROB_COL


def column_stats(s: pd.Series) -> Dict[str, float]:
    v = np.asarray(s, dtype=float)
    return {
        "min": float(np.min(v)),
        "mean": float(np.mean(v)),
        "max": float(np.max(v)),
        "std": float(np.std(v, ddof=0)),
    }


def dataset_summary(df: pd.DataFrame, renew_prob: Optional[np.ndarray] = None) -> Dict[str, Any]:
    """
    Read-only summary of a generated table. `renew_prob` is passed separately
    because it is not part of the persisted columns.
    """
    out: Dict[str, Any] = {"rows": int(df.shape[0])}
    if df.shape[0] == 0:
        return out

    if LABEL_COL in df.columns:
        out["renew_rate"] = float(df[LABEL_COL].mean())
    if "youtube_tv_subscriber" in df.columns:
        out["youtube_tv_share"] = float(df["youtube_tv_subscriber"].mean())

    if renew_prob is None and PROB_COL in df.columns:
        renew_prob = df[PROB_COL].to_numpy()
    if renew_prob is not None:
        out["mean_renew_prob"] = float(np.mean(renew_prob))

    out["columns"] = {
        c: column_stats(df[c]) for c in df.columns if c not in ("user_id",) and pd.api.types.is_numeric_dtype(df[c])
    }
    if "total_videos_watched" in df.columns:
        v = df["total_videos_watched"].to_numpy(dtype=float)
        # heavy tail from near-zero per-video durations
        out["videos_watched_p99"] = float(np.quantile(v, 0.99))
        out["videos_watched_max"] = float(np.max(v))
    return out
