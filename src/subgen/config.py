from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Optional

from .errors import InvalidParameter

DEFAULT_USER_ID_OFFSET = 1000001


@dataclass(frozen=True)
class NormalParams:
    mean: float
    sd: float


@dataclass(frozen=True)
class TruncatedNormalParams:
    mean: float
    sd: float
    low: float
    high: float


@dataclass(frozen=True)
class UniformParams:
    low: float
    high: float


@dataclass(frozen=True)
class FeatureParams:
    """Distribution constants of the feature generator (defaults = reference population)."""

    tenure: TruncatedNormalParams = TruncatedNormalParams(mean=12.0, sd=8.0, low=0.0, high=72.0)
    sessions: TruncatedNormalParams = TruncatedNormalParams(mean=40.0, sd=20.0, low=-1.0, high=72.0)
    # minutes per session; absolute value of the draw is used
    session_length: NormalParams = NormalParams(mean=2.0, sd=10.0)
    watch_fraction: UniformParams = UniformParams(low=0.6, high=0.95)
    # minutes per video; absolute value of the draw is used
    video_length: NormalParams = NormalParams(mean=3.0, sd=10.0)
    subscription_jitter: UniformParams = UniformParams(low=-20.0, high=0.0)
    comment_rate: float = 2.0
    youtube_tv_prob: float = 0.3878


@dataclass(frozen=True)
class LabelParams:
    """
    Logistic label model. p0 is the intercept probability, or1..or4 are odds
    ratios per unit of tenure, videos watched, subscriptions and liked videos.
    """

    p0: float = 0.20
    or1: float = 1.102
    or2: float = 1.0035
    or3: float = 1.003
    or4: float = 1.0045
    threshold: float = 0.5


@dataclass(frozen=True)
class GenerationConfig:
    n_users: int
    seed: int
    user_id_offset: int = DEFAULT_USER_ID_OFFSET
    features: FeatureParams = field(default_factory=FeatureParams)
    label: LabelParams = field(default_factory=LabelParams)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_NESTED = {
    "tenure": TruncatedNormalParams,
    "sessions": TruncatedNormalParams,
    "session_length": NormalParams,
    "watch_fraction": UniformParams,
    "video_length": NormalParams,
    "subscription_jitter": UniformParams,
}


def _is_int(x: Any) -> bool:
    return isinstance(x, numbers.Integral) and not isinstance(x, bool)


def _as_float(value: Any, name: str, stage: str = "config") -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameter(f"expected a number, got {value!r}", stage=stage, field=name)
    value = float(value)
    if not math.isfinite(value):
        raise InvalidParameter(f"expected a finite number, got {value!r}", stage=stage, field=name)
    return value


def _check_unknown(section: Dict[str, Any], allowed, name: str) -> None:
    unknown = sorted(set(section) - set(allowed))
    if unknown:
        raise InvalidParameter(f"unknown keys {unknown}", stage="config", field=name)


def _build(cls, section: Any, base, name: str):
    if section is None:
        return base
    if not isinstance(section, dict):
        raise InvalidParameter(f"expected a mapping, got {section!r}", stage="config", field=name)
    names = [f.name for f in fields(cls)]
    _check_unknown(section, names, name)
    kw = {}
    for key, value in section.items():
        key_name = f"{name}.{key}"
        nested = _NESTED.get(key) if cls is FeatureParams else None
        if nested is not None:
            kw[key] = _build(nested, value, getattr(base, key), key_name)
        else:
            kw[key] = _as_float(value, key_name)
    return replace(base, **kw)


def validate_n_users(n_users: Any) -> int:
    if not _is_int(n_users) or n_users <= 0:
        raise InvalidParameter(f"population size must be a positive integer, got {n_users!r}", stage="config", field="n_users")
    return int(n_users)


def validate_seed(seed: Any) -> int:
    if not _is_int(seed) or seed < 0:
        raise InvalidParameter(f"seed must be a non-negative integer, got {seed!r}", stage="config", field="seed")
    return int(seed)


def validate_feature_params(fp: FeatureParams) -> None:
    for name in ("tenure", "sessions"):
        tn = getattr(fp, name)
        if tn.sd <= 0:
            raise InvalidParameter(f"sd must be > 0, got {tn.sd}", stage="config", field=f"features.{name}.sd")
        if tn.low >= tn.high:
            raise InvalidParameter(f"low must be < high, got ({tn.low}, {tn.high}]", stage="config", field=f"features.{name}")
    for name in ("session_length", "video_length"):
        if getattr(fp, name).sd <= 0:
            raise InvalidParameter("sd must be > 0", stage="config", field=f"features.{name}.sd")
    for name in ("watch_fraction", "subscription_jitter"):
        u = getattr(fp, name)
        if u.low >= u.high:
            raise InvalidParameter(f"low must be < high, got ({u.low}, {u.high})", stage="config", field=f"features.{name}")
    if fp.watch_fraction.low < 0.0 or fp.watch_fraction.high > 1.0:
        raise InvalidParameter("watch fraction must lie within [0, 1]", stage="config", field="features.watch_fraction")
    if fp.comment_rate <= 0:
        raise InvalidParameter(f"comment_rate must be > 0, got {fp.comment_rate}", stage="config", field="features.comment_rate")
    if not 0.0 <= fp.youtube_tv_prob <= 1.0:
        raise InvalidParameter(
            f"youtube_tv_prob must be in [0, 1], got {fp.youtube_tv_prob}", stage="config", field="features.youtube_tv_prob"
        )


def validate_label_params(lp: LabelParams, stage: str = "config") -> None:
    for name in ("p0", "or1", "or2", "or3", "or4", "threshold"):
        _as_float(getattr(lp, name), f"label.{name}", stage=stage)
    if not 0.0 < lp.p0 < 1.0:
        raise InvalidParameter(f"p0 must be in (0, 1), got {lp.p0}", stage=stage, field="label.p0")
    for name in ("or1", "or2", "or3", "or4"):
        if getattr(lp, name) <= 0:
            raise InvalidParameter(f"odds ratio must be > 0, got {getattr(lp, name)}", stage=stage, field=f"label.{name}")
    if not 0.0 < lp.threshold < 1.0:
        raise InvalidParameter(f"threshold must be in (0, 1), got {lp.threshold}", stage=stage, field="label.threshold")


def validate_config(cfg: GenerationConfig) -> GenerationConfig:
    validate_n_users(cfg.n_users)
    validate_seed(cfg.seed)
    if not _is_int(cfg.user_id_offset):
        raise InvalidParameter(f"user_id_offset must be an integer, got {cfg.user_id_offset!r}", stage="config", field="user_id_offset")
    validate_feature_params(cfg.features)
    validate_label_params(cfg.label)
    return cfg


def config_from_dict(
    raw: Dict[str, Any],
    n_users: Optional[int] = None,
    seed: Optional[int] = None,
) -> GenerationConfig:
    """
    Build a validated GenerationConfig from a YAML-style dict.
    `n_users` / `seed` override the values found in the dict (CLI flags).
    Keys outside the generator's concern (e.g. `artifacts_dir`) are ignored.
    """
    raw = raw or {}
    cfg = GenerationConfig(
        n_users=n_users if n_users is not None else raw.get("n_users", 100_000),
        seed=seed if seed is not None else raw.get("seed", 42),
        user_id_offset=raw.get("user_id_offset", DEFAULT_USER_ID_OFFSET),
        features=_build(FeatureParams, raw.get("features"), FeatureParams(), "features"),
        label=_build(LabelParams, raw.get("label"), LabelParams(), "label"),
    )
    return validate_config(cfg)
