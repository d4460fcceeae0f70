"""
Observability Module
====================

Session reporting for the tremor monitor.

This module provides:
    - SessionReportBuilder: Derives a structured report from window results

DESIGN RULES:
    - Does NOT import agent logic
    - Does NOT influence classification
"""

from tremor_monitor.observability.report import (
    MIN_WINDOWS,
    SessionReport,
    SessionRecord,
    SessionReportBuilder,
    WindowRecord,
)


__all__ = [
    "MIN_WINDOWS",
    "SessionReport",
    "SessionRecord",
    "SessionReportBuilder",
    "WindowRecord",
]
