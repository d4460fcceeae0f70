#!/usr/bin/env python3
"""
CSV Replay Script
=================

Offline replay of a recorded accelerometer session through the pipeline.

This script:
    1. Reads raw samples from a CSV file (ax, ay, az[, timestamp])
    2. Feeds them through TremorPipeline with a sample-driven clock
    3. Logs every window classification
    4. Reports the final session summary (and, optionally, the session report)

The clock advances 1/fs per sample, so calibration and session durations
follow the recording rather than wall time.

Usage:
    python scripts/replay_csv.py recording.csv
    python scripts/replay_csv.py recording.csv --calibrate --report
    python scripts/replay_csv.py recording.csv --config config.yaml
"""

import argparse
import csv
import json
import logging
import math
import os
import sys

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from tremor_monitor.config import build_pipeline_config, load_config
from tremor_monitor.models.sample import RawSample
from tremor_monitor.observability import SessionReportBuilder
from tremor_monitor.pipeline import TremorPipeline


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


class SampleClock:
    """Clock driven by the number of samples replayed."""

    def __init__(self, sample_rate_hz: float) -> None:
        self.sample_rate_hz = sample_rate_hz
        self.ticks = 0

    def __call__(self) -> float:
        return self.ticks / self.sample_rate_hz


def read_samples(path: str):
    """
    Yield RawSamples from a CSV file.

    A header row (ax, ay, az[, timestamp]) is optional. Rows that do not
    parse or hold non-finite values are skipped.
    """
    with open(path, newline="") as f:
        reader = csv.reader(f)
        for line_no, row in enumerate(reader, start=1):
            if not row or row[0].strip().lower() in ("ax", "x"):
                continue
            try:
                values = [float(v) for v in row[:4]]
                ax, ay, az = values[:3]
            except ValueError:
                logger.warning(f"Skipping line {line_no}: not numeric")
                continue
            if not all(math.isfinite(v) for v in (ax, ay, az)):
                logger.warning(f"Skipping line {line_no}: non-finite value")
                continue
            timestamp = values[3] if len(values) > 3 else 0.0
            yield RawSample(ax, ay, az, timestamp=timestamp)


def replay(path: str, config_path: str, calibrate: bool, report: bool) -> dict:
    """
    Run the replay.

    Returns:
        Session summary dict
    """
    settings = load_config(config_path)
    config = build_pipeline_config(settings)
    clock = SampleClock(config.sample_rate_hz)

    pipeline = TremorPipeline(config, clock=clock)
    builder = SessionReportBuilder(sample_rate_hz=config.sample_rate_hz)
    pipeline.on_calibration_complete(lambda r: builder.set_noise_floor(r.noise_floor))

    logger.info("=" * 60)
    logger.info(f"Replaying {path}")
    logger.info("=" * 60)

    if calibrate:
        pipeline.start_calibration()

    for sample in read_samples(path):
        result = pipeline.on_sample(sample)
        if result is not None:
            builder.record(result, clock())
            logger.info(
                f"[{clock():8.2f}s] {result.motion_type.value:<18} "
                f"conf={result.confidence:.2f} score={result.score:.2f} "
                f"P=({result.powers.p1:.4f}, {result.powers.p2:.4f}, {result.powers.p3:.4f})"
            )
        clock.ticks += 1

    stats = pipeline.session_summary()

    logger.info("=" * 60)
    logger.info("SESSION SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Samples: {pipeline.sample_count}")
    logger.info(f"Windows: {stats.window_count}")
    logger.info(f"Duration: {stats.duration_ms / 1000.0:.1f}s")
    logger.info(f"Average score: {stats.average_score:.2f}")
    logger.info(f"Peak score: {stats.peak_score:.2f}")
    logger.info(f"Dominant: {stats.dominant_label}")
    logger.info("=" * 60)

    if report:
        session_report = builder.build()
        if session_report is None:
            logger.warning("Not enough windows for a session report")
        else:
            print(json.dumps(session_report.to_dict(), indent=2))

    return stats.to_dict()


def main():
    parser = argparse.ArgumentParser(
        description="Replay a recorded accelerometer CSV through the tremor pipeline"
    )
    parser.add_argument("path", type=str, help="CSV file with ax, ay, az[, timestamp]")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: search common locations)",
    )
    parser.add_argument(
        "--calibrate",
        action="store_true",
        help="Run a calibration over the first seconds of the recording",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print the session report as JSON",
    )

    args = parser.parse_args()

    summary = replay(args.path, args.config, args.calibrate, args.report)

    sys.exit(0 if summary["windows"] > 0 else 1)


if __name__ == "__main__":
    main()
