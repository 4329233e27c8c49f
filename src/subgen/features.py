from __future__ import annotations

from typing import Dict, Optional

import numpy as np
import pandas as pd
from scipy.stats import truncnorm

from .config import (
    DEFAULT_USER_ID_OFFSET,
    FeatureParams,
    NormalParams,
    TruncatedNormalParams,
    UniformParams,
    validate_feature_params,
    validate_n_users,
    validate_seed,
)
from .errors import SamplingError
from .utils import get_logger

log = get_logger("subgen.features")

PERCENTILE_COL = "percentile"

FEATURE_COLUMNS = [
    "user_id",
    "subscription_tenure",
    "total_user_sessions",
    "total_duration_min",
    "total_watch_duration_min",
    "total_videos_watched",
    "num_user_subscriptions",
    "num_liked_videos",
    "num_comments",
    "youtube_tv_subscriber",
]

# One child stream per random draw. Order is part of the reproducibility
# contract: append new streams, never reorder.
STREAMS = [
    "tenure",
    "sessions",
    "session_length",
    "watch_fraction",
    "video_length",
    "subscription_jitter",
    "liked_fraction",
    "comments",
    "youtube_tv",
]


def make_streams(seed: int) -> Dict[str, np.random.Generator]:
    """Independent generators, one per column draw, all derived from `seed`."""
    children = np.random.SeedSequence(seed).spawn(len(STREAMS))
    return {name: np.random.default_rng(ss) for name, ss in zip(STREAMS, children)}


def _require_finite(values: np.ndarray, col: str) -> np.ndarray:
    values = np.asarray(values, dtype=float)
    bad = ~np.isfinite(values)
    if bad.any():
        raise SamplingError(
            f"{int(bad.sum())} non-finite value(s) produced (first at row {int(np.argmax(bad))})",
            stage="features",
            field=col,
        )
    return values


def r_truncnorm(rng: np.random.Generator, p: TruncatedNormalParams, n: int) -> np.ndarray:
    """Normal(mean, sd) restricted to (low, high]."""
    a = (p.low - p.mean) / p.sd
    b = (p.high - p.mean) / p.sd
    return truncnorm.rvs(a, b, loc=p.mean, scale=p.sd, size=n, random_state=rng)


def r_abs_normal(rng: np.random.Generator, p: NormalParams, n: int) -> np.ndarray:
    return np.abs(rng.normal(loc=p.mean, scale=p.sd, size=n))


def r_uniform(rng: np.random.Generator, p: UniformParams, n: int) -> np.ndarray:
    return rng.uniform(low=p.low, high=p.high, size=n)


# ---------------------------
# Phase 1: independent sampling
# ---------------------------

def sample_independent(
    n: int,
    params: FeatureParams,
    streams: Dict[str, np.random.Generator],
    user_id_offset: int = DEFAULT_USER_ID_OFFSET,
) -> pd.DataFrame:
    """Ids, tenure, sessions and the per-row duration chain."""
    user_id = np.arange(user_id_offset, user_id_offset + n, dtype=np.int64)

    tenure = np.ceil(_require_finite(r_truncnorm(streams["tenure"], params.tenure, n), "subscription_tenure"))
    sessions = np.ceil(_require_finite(r_truncnorm(streams["sessions"], params.sessions, n), "total_user_sessions"))
    # ceil of (-1, 0] is -0.0
    sessions = sessions + 0.0

    duration = sessions * r_abs_normal(streams["session_length"], params.session_length, n)
    duration = _require_finite(duration, "total_duration_min")

    watch = duration * r_uniform(streams["watch_fraction"], params.watch_fraction, n)
    watch = _require_finite(watch, "total_watch_duration_min")

    # Heavy right tail when the divisor is close to zero; kept unclamped.
    with np.errstate(divide="ignore", invalid="ignore"):
        videos = watch / r_abs_normal(streams["video_length"], params.video_length, n)
    videos = _require_finite(videos, "total_videos_watched")

    return pd.DataFrame({
        "user_id": user_id,
        "subscription_tenure": tenure.astype(np.int64),
        "total_user_sessions": sessions.astype(np.int64),
        "total_duration_min": duration,
        "total_watch_duration_min": watch,
        "total_videos_watched": videos,
    })


# ---------------------------
# Barrier: population-wide rank
# ---------------------------

def rank_sessions(df: pd.DataFrame) -> pd.DataFrame:
    """Fractional rank (average ties) of total_user_sessions over the full table."""
    df = df.copy()
    df[PERCENTILE_COL] = df["total_user_sessions"].rank(method="average", pct=True).to_numpy(dtype=float)
    return df


# ---------------------------
# Phase 2: rank-dependent derivations
# ---------------------------

def derive_dependent(
    df: pd.DataFrame,
    params: FeatureParams,
    streams: Dict[str, np.random.Generator],
) -> pd.DataFrame:
    """Subscriptions, likes, comments and the YouTube TV flag."""
    n = df.shape[0]
    percentile = df[PERCENTILE_COL].to_numpy(dtype=float)
    videos = df["total_videos_watched"].to_numpy(dtype=float)

    jitter = r_uniform(streams["subscription_jitter"], params.subscription_jitter, n)
    subs = np.floor(np.abs(percentile * 100.0 + jitter))
    subs = _require_finite(subs, "num_user_subscriptions")

    liked = np.ceil(streams["liked_fraction"].random(n) * videos)
    liked = _require_finite(liked, "num_liked_videos")

    per_sub = np.round(streams["comments"].exponential(scale=1.0 / params.comment_rate, size=n))
    comments = _require_finite(per_sub * subs, "num_comments")

    yt = (streams["youtube_tv"].random(n) < params.youtube_tv_prob).astype(np.int64)

    df = df.copy()
    df["num_user_subscriptions"] = subs.astype(np.int64)
    df["num_liked_videos"] = liked.astype(np.int64)
    df["num_comments"] = comments.astype(np.int64)
    df["youtube_tv_subscriber"] = yt
    return df


def generate_features(
    n_users: int,
    seed: int,
    params: Optional[FeatureParams] = None,
    user_id_offset: int = DEFAULT_USER_ID_OFFSET,
) -> pd.DataFrame:
    """
    Feature table of `n_users` rows: the raw feature columns in output order
    followed by the intermediate `percentile` column.
    Reproducible for a given seed and numpy/scipy version.
    """
    n = validate_n_users(n_users)
    seed = validate_seed(seed)
    params = params or FeatureParams()
    validate_feature_params(params)

    streams = make_streams(seed)
    df = sample_independent(n, params, streams, user_id_offset=user_id_offset)
    log.info("features_sampled", n=n, seed=seed)

    df = rank_sessions(df)
    log.info("percentile_ranked", n=n, distinct_sessions=int(df["total_user_sessions"].nunique()))

    df = derive_dependent(df, params, streams)
    return df[FEATURE_COLUMNS + [PERCENTILE_COL]]
