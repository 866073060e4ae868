"""
Pipeline module for end-to-end orchestration.

This module provides:
- Stage-by-stage benchmark orchestration
"""

from .orchestrator import Pipeline, STAGES

__all__ = ["Pipeline", "STAGES"]
