"""
Agent Graph Definition
======================

LangGraph workflow run once per completed analysis window.

LangGraph is used for CONTROL FLOW only; both nodes are deterministic.

Graph Structure:
    START → classify → aggregate → END

    classify:  BandPowers + mean_norm + thresholds → ClassificationResult
    aggregate: folds the result into the SessionAggregator

Design Philosophy:
    - The graph owns the session aggregator; the calibrator (and with it
      the thresholds) is owned by the pipeline and passed in per window
    - No LLM calls, no learning
"""

import logging
from typing import Any, Dict, Optional, TypedDict

from langgraph.graph import END, StateGraph

from tremor_monitor.agent.classifier import Classifier, ClassifierParameters
from tremor_monitor.agent.session import SessionAggregator
from tremor_monitor.models.classification import (
    BandPowers,
    CalibrationThresholds,
    ClassificationResult,
)
from tremor_monitor.models.session import SessionStats


logger = logging.getLogger(__name__)


class WindowGraphState(TypedDict):
    """
    State passed through the graph for one window.

    Attributes:
        powers: Band powers of the completed window
        mean_norm: Slow-motion magnitude at window completion
        thresholds: Calibration thresholds snapshot
        timestamp: Clock time of window completion
        result: Classification output
        window_index: Session window count after aggregation
    """
    powers: BandPowers
    mean_norm: float
    thresholds: CalibrationThresholds
    timestamp: float
    result: Optional[ClassificationResult]
    window_index: int


class TremorAgentGraph:
    """
    LangGraph-based classifier + session aggregator.

    Receives band powers per window, classifies them and updates the
    running session.
    """

    def __init__(
        self,
        parameters: Optional[ClassifierParameters] = None,
        log_every_n_windows: int = 10,
    ) -> None:
        """
        Initialize the agent graph.

        Args:
            parameters: Classification constants (uses defaults if None)
            log_every_n_windows: Log the session every N windows
        """
        self.classifier = Classifier(parameters)
        self.aggregator = SessionAggregator()
        self.log_every_n_windows = log_every_n_windows

        self._graph = self._build_graph()
        self._last_result: Optional[ClassificationResult] = None

        logger.info("TremorAgentGraph initialized")

    def _build_graph(self):
        """Build the LangGraph workflow."""
        workflow = StateGraph(WindowGraphState)

        workflow.add_node("classify", self._classify_node)
        workflow.add_node("aggregate", self._aggregate_node)

        workflow.set_entry_point("classify")
        workflow.add_edge("classify", "aggregate")
        workflow.add_edge("aggregate", END)

        return workflow.compile()

    def _classify_node(self, state: WindowGraphState) -> Dict[str, Any]:
        """Classify the window."""
        result = self.classifier.classify(
            state["powers"],
            state["mean_norm"],
            state["thresholds"],
        )
        return {"result": result}

    def _aggregate_node(self, state: WindowGraphState) -> Dict[str, Any]:
        """Fold the result into the session."""
        result = state["result"]
        self.aggregator.update(result, state["timestamp"])

        window_count = self.aggregator.window_count
        if window_count % self.log_every_n_windows == 0:
            stats = self.aggregator.summary(state["timestamp"])
            logger.info(
                f"Session [window {window_count}]: "
                f"avg={stats.average_score:.2f}, peak={stats.peak_score:.2f}, "
                f"dominant={stats.dominant_label}"
            )

        return {"window_index": window_count}

    def process(
        self,
        powers: BandPowers,
        mean_norm: float,
        thresholds: CalibrationThresholds,
        timestamp: float,
    ) -> ClassificationResult:
        """
        Classify one window and update the session.

        Args:
            powers: Band powers of the completed window
            mean_norm: Slow-motion magnitude (g)
            thresholds: Current calibration thresholds
            timestamp: Clock time of window completion (seconds)

        Returns:
            ClassificationResult for the window
        """
        final = self._graph.invoke({
            "powers": powers,
            "mean_norm": mean_norm,
            "thresholds": thresholds,
            "timestamp": timestamp,
            "result": None,
            "window_index": self.aggregator.window_count,
        })

        result = final["result"]
        self._last_result = result

        logger.debug(f"Window {self.aggregator.window_count}: {result!r}")
        return result

    def summary(self, timestamp: float) -> SessionStats:
        """Current session statistics."""
        return self.aggregator.summary(timestamp)

    @property
    def last_result(self) -> Optional[ClassificationResult]:
        return self._last_result

    def reset(self) -> None:
        """Start a new session."""
        self.aggregator.reset()
        self._last_result = None
        logger.info("TremorAgentGraph reset")

    def get_metrics(self) -> Dict[str, Any]:
        """Get agent metrics for observability."""
        last = self._last_result
        return {
            "windows": self.aggregator.window_count,
            "last_type": last.motion_type.value if last else None,
            "last_score": round(last.score, 3) if last else None,
        }
