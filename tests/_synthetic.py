import numpy as np
import pandas as pd

from src.subgen.features import FEATURE_COLUMNS


def make_feature_table(n=200, seed=7):
    """Hand-made feature table (not drawn by the generator) for label tests."""
    rng = np.random.default_rng(seed)
    sessions = rng.integers(0, 73, size=n)
    duration = sessions * np.abs(rng.normal(2, 10, size=n))
    watch = duration * rng.uniform(0.6, 0.95, size=n)
    videos = watch / rng.uniform(1, 10, size=n)
    subs = rng.integers(0, 100, size=n)
    df = pd.DataFrame({
        "user_id": np.arange(1000001, 1000001 + n),
        "subscription_tenure": rng.integers(1, 73, size=n),
        "total_user_sessions": sessions,
        "total_duration_min": duration,
        "total_watch_duration_min": watch,
        "total_videos_watched": videos,
        "num_user_subscriptions": subs,
        "num_liked_videos": np.ceil(rng.random(n) * videos).astype(int),
        "num_comments": rng.integers(0, 3, size=n) * subs,
        "youtube_tv_subscriber": (rng.random(n) < 0.39).astype(int),
    })
    return df[FEATURE_COLUMNS]
