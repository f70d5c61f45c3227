"""Metrics: county diagnostics, correlation and dashboard calculations."""

from src.metrics.deriver import (
    CorrelationResult,
    MetricsReport,
    annotate,
    correlate,
    derive_metrics,
    describe,
    find_incomplete,
    find_zero_scores,
    summarize_by_classification,
)
from src.metrics.presentation import (
    adjusted_rate,
    adjusted_score,
    filter_by_classification,
    presentation_frame,
    scatter_frame,
)

__all__ = [
    "CorrelationResult",
    "MetricsReport",
    "annotate",
    "correlate",
    "derive_metrics",
    "describe",
    "find_incomplete",
    "find_zero_scores",
    "summarize_by_classification",
    "adjusted_rate",
    "adjusted_score",
    "filter_by_classification",
    "presentation_frame",
    "scatter_frame",
]
