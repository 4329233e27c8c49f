import numpy as np
import pandas as pd
import pytest

from src.subgen import features as feat_mod
from src.subgen.config import FeatureParams, NormalParams
from src.subgen.errors import InvalidParameter, SamplingError
from src.subgen.features import FEATURE_COLUMNS, PERCENTILE_COL, generate_features, rank_sessions


def test_scenario_five_users():
    df = generate_features(5, seed=100)
    assert list(df.columns) == FEATURE_COLUMNS + [PERCENTILE_COL]
    assert df["user_id"].tolist() == [1000001, 1000002, 1000003, 1000004, 1000005]
    num = df.drop(columns=["user_id"]).to_numpy(dtype=float)
    assert np.isfinite(num).all()


def test_same_seed_same_table():
    a = generate_features(2000, seed=11)
    b = generate_features(2000, seed=11)
    pd.testing.assert_frame_equal(a, b)
    c = generate_features(2000, seed=12)
    assert not a.equals(c)


def test_ranges_and_relations():
    df = generate_features(20000, seed=3)
    assert df["user_id"].is_monotonic_increasing and df["user_id"].is_unique
    assert (df["user_id"].diff().dropna() == 1).all()
    assert df["subscription_tenure"].between(1, 72).all()
    assert df["total_user_sessions"].between(0, 72).all()
    assert (df["total_duration_min"] >= 0).all()
    assert (df["total_watch_duration_min"] <= df["total_duration_min"]).all()
    assert (df["total_videos_watched"] >= 0).all()
    assert (df["num_user_subscriptions"] >= 0).all()
    assert (df["num_liked_videos"] <= np.ceil(df["total_videos_watched"])).all()
    no_subs = df["num_user_subscriptions"] == 0
    assert (df.loc[no_subs, "num_comments"] == 0).all()
    zero_sessions = df["total_user_sessions"] == 0
    assert (df.loc[zero_sessions, "total_duration_min"] == 0).all()
    assert set(df["youtube_tv_subscriber"].unique()) <= {0, 1}
    assert df[PERCENTILE_COL].gt(0).all() and df[PERCENTILE_COL].le(1).all()


def test_youtube_tv_share_close_to_probability():
    df = generate_features(50000, seed=5)
    assert abs(df["youtube_tv_subscriber"].mean() - 0.3878) < 0.01


def test_percentile_is_average_fractional_rank():
    df = pd.DataFrame({"total_user_sessions": [3, 1, 3, 2]})
    out = rank_sessions(df)
    assert out[PERCENTILE_COL].tolist() == [0.875, 0.25, 0.875, 0.5]
    assert PERCENTILE_COL not in df.columns


def test_percentile_matches_population_rank():
    df = generate_features(3000, seed=9)
    expected = df["total_user_sessions"].rank(method="average", pct=True)
    np.testing.assert_allclose(df[PERCENTILE_COL].to_numpy(), expected.to_numpy())


def test_user_id_offset_is_configurable():
    df = generate_features(3, seed=1, user_id_offset=10)
    assert df["user_id"].tolist() == [10, 11, 12]


@pytest.mark.parametrize("n", [0, -5, 2.5, True])
def test_invalid_population_size(n):
    with pytest.raises(InvalidParameter) as ei:
        generate_features(n, seed=1)
    assert ei.value.field == "n_users"


@pytest.mark.parametrize("seed", [-1, "abc", 1.5, None])
def test_invalid_seed(seed):
    with pytest.raises(InvalidParameter):
        generate_features(10, seed=seed)


def test_non_finite_videos_raise(monkeypatch):
    video = NormalParams(mean=3.0, sd=10.0)
    params = FeatureParams(video_length=video)
    real = feat_mod.r_abs_normal

    def fake(rng, p, n):
        if p is video:
            return np.zeros(n)
        return real(rng, p, n)

    monkeypatch.setattr(feat_mod, "r_abs_normal", fake)
    with pytest.raises(SamplingError) as ei:
        generate_features(50, seed=2, params=params)
    assert ei.value.stage == "features"
    assert ei.value.field == "total_videos_watched"
