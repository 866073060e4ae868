"""
Evaluation module for model performance assessment.

This module provides:
- Forecast alignment onto the test horizon
- Error metrics over defined steps
- The evaluation harness and its result table
- Visualization tools
"""

from .alignment import align_forecast
from .metrics import calculate_metrics, compare_models
from .harness import EvaluationHarness, EvaluationResult
from .visualizer import PredictionVisualizer

__all__ = [
    "align_forecast",
    "calculate_metrics",
    "compare_models",
    "EvaluationHarness",
    "EvaluationResult",
    "PredictionVisualizer"
]
