from __future__ import annotations

from typing import Dict, Optional

import numpy as np
import pandas as pd
from scipy.special import expit

from .config import LabelParams, validate_label_params
from .errors import MissingColumn
from .utils import get_logger

log = get_logger("subgen.labels")

PROB_COL = "renew_prob"
LABEL_COL = "renew_flag"

# predictor column -> odds-ratio field of LabelParams
PREDICTORS = {
    "subscription_tenure": "or1",
    "total_videos_watched": "or2",
    "num_user_subscriptions": "or3",
    "num_liked_videos": "or4",
}


def coefficients(params: LabelParams) -> Dict[str, float]:
    """Intercept (log-odds of p0) and per-feature log odds ratios."""
    coefs = {"intercept": float(np.log(params.p0 / (1.0 - params.p0)))}
    for col, attr in PREDICTORS.items():
        coefs[col] = float(np.log(getattr(params, attr)))
    return coefs


def renew_probability(df: pd.DataFrame, params: Optional[LabelParams] = None) -> np.ndarray:
    params = params or LabelParams()
    missing = [c for c in PREDICTORS if c not in df.columns]
    if missing:
        raise MissingColumn(f"label model requires columns {missing}", stage="labels", field=missing[0])

    coefs = coefficients(params)
    eta = np.full(df.shape[0], coefs["intercept"], dtype=float)
    for col in PREDICTORS:
        eta = eta + coefs[col] * df[col].to_numpy(dtype=float)
    return expit(eta)


def assign_labels(df: pd.DataFrame, params: Optional[LabelParams] = None) -> pd.DataFrame:
    """
    Append `renew_prob` and `renew_flag` (renew_prob >= threshold) to a copy of
    the feature table. Existing label columns are recomputed.
    """
    params = params or LabelParams()
    validate_label_params(params, stage="labels")

    p = renew_probability(df, params)

    out = df.drop(columns=[PROB_COL, LABEL_COL], errors="ignore").copy()
    out[PROB_COL] = p
    out[LABEL_COL] = (p >= params.threshold).astype(np.int64)
    log.info("labels_assigned", n=int(out.shape[0]), renew_rate=float(out[LABEL_COL].mean()) if len(out) else 0.0)
    return out
