"""Platt scaling of signal strength against settled outcomes.

Strength on the 0-100 scale is read as a raw probability and mapped through
``sigmoid(slope * logit(strength / 100) + intercept)``, with slope and
intercept fitted on the calibration log.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.optimize import minimize
from scipy.special import expit, logit

from goal_edge.calibration.models import CalibrationRecord

# Fitting on fewer observations is not attempted
MIN_FIT_SAMPLES = 10

_EPS = 1e-6


def strength_logit(signal_strength: float) -> float:
    p = np.clip(signal_strength / 100.0, _EPS, 1 - _EPS)
    return float(logit(p))


@dataclass(frozen=True)
class PlattFit:
    slope: float
    intercept: float
    samples: int

    def goal_probability(self, signal_strength: float) -> float:
        """Calibrated probability of a goal in the window for a strength."""
        return float(expit(self.slope * strength_logit(signal_strength) + self.intercept))


def fit_platt(
    records: list[CalibrationRecord], l2: float = 0.01,
) -> PlattFit | None:
    """Fit slope and intercept by L2-penalized log loss.

    Returns None when the log holds fewer than MIN_FIT_SAMPLES records.
    """
    if len(records) < MIN_FIT_SAMPLES:
        return None

    x = np.array([strength_logit(r.signal_strength) for r in records])
    y = np.array([1.0 if r.is_hit else 0.0 for r in records])

    def loss(params: np.ndarray) -> float:
        slope, intercept = params
        z = slope * x + intercept
        return float(np.sum(np.logaddexp(0.0, z) - y * z) + l2 * (slope**2 + intercept**2))

    result = minimize(loss, x0=np.array([1.0, 0.0]), method="L-BFGS-B")
    slope, intercept = (float(v) for v in result.x)
    return PlattFit(slope=slope, intercept=intercept, samples=len(records))
