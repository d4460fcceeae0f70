"""
Agent Module
============

Decision layer of the tremor monitor.

This module implements everything downstream of the band powers:
    - calibrator.py: One-shot noise calibration (Idle/Collecting)
    - classifier.py: Band powers → label, confidence, score
    - session.py: Running session statistics
    - graph.py: LangGraph workflow wiring classify → aggregate

Key Design Decisions:
    - LangGraph is used for STRUCTURE, not LLM reasoning
    - Classification is a pure function of its explicit inputs
    - Tuned constants live in parameter dataclasses, not literals
"""

from tremor_monitor.agent.calibrator import (
    CalibrationParameters,
    CalibrationState,
    Calibrator,
)
from tremor_monitor.agent.classifier import Classifier, ClassifierParameters
from tremor_monitor.agent.session import SessionAggregator
from tremor_monitor.agent.graph import TremorAgentGraph

__all__ = [
    "CalibrationParameters",
    "CalibrationState",
    "Calibrator",
    "Classifier",
    "ClassifierParameters",
    "SessionAggregator",
    "TremorAgentGraph",
]
