"""Analysis module for run performance and training-load calculations."""

from .best_efforts import find_best, find_best_for, pick_best_reference
from .race_predictor import predict_marathon, predict_marathon_from_time, predict_seconds
from .training_load import compute_training_load, zone_from_acr
from .period_series import build_series
from .kpis import compute_kpis

__all__ = [
    "find_best",
    "find_best_for",
    "pick_best_reference",
    "predict_marathon",
    "predict_marathon_from_time",
    "predict_seconds",
    "compute_training_load",
    "zone_from_acr",
    "build_series",
    "compute_kpis",
]
