"""
Module: exporter.timing

Purpose:
    Timing instrumentation for the export pipeline: how long each root
    spends in each phase (walk, postprocess, validation, serialization).

Key Classes:
    - TimingLog: Collects run-level and per-root phase durations

Key Functions:
    - timed_phase: Context manager for timing a code block

Dependencies:
    - time (std)
    - exporter.file_locking: Merged saves

Used By:
    - exporter.pipeline
    - scripts/export_gui.py
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

logger = logging.getLogger(__name__)


def _phase_averages(root_timings: Dict[str, Dict[str, float]]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    for phases in root_timings.values():
        for phase, duration in phases.items():
            totals[phase] = totals.get(phase, 0.0) + duration
            counts[phase] = counts.get(phase, 0) + 1
    return {phase: totals[phase] / counts[phase] for phase in totals}


def _slowest_roots(root_timings: Dict[str, Dict[str, float]], n: int) -> List[Tuple[str, float, str, float]]:
    results = []
    for name, phases in root_timings.items():
        if not phases:
            continue
        slowest = max(phases.items(), key=lambda x: x[1])
        results.append((name, sum(phases.values()), slowest[0], slowest[1]))
    results.sort(key=lambda x: x[1], reverse=True)
    return results[:n]


@dataclass
class TimingLog:
    """
    Timing metrics for one export run.

    Attributes:
        run_timings: phase -> seconds, for work not tied to one root
        root_timings: root name -> {phase -> seconds}

    Example:
        >>> log = TimingLog()
        >>> log.log_run("load", 0.02)
        >>> log.log_root("menu", "walk", 0.011)
        >>> print(log.summary())
    """
    run_timings: Dict[str, float] = field(default_factory=dict)
    root_timings: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def log_run(self, phase: str, duration: float) -> None:
        self.run_timings[phase] = duration

    def log_root(self, root: str, phase: str, duration: float) -> None:
        self.root_timings.setdefault(root, {})[phase] = duration

    def get_root_total(self, root: str) -> float:
        return sum(self.root_timings.get(root, {}).values())

    def get_phase_averages(self) -> Dict[str, float]:
        """Average time per phase across all roots."""
        return _phase_averages(self.root_timings)

    def get_slowest_roots(self, n: int = 3) -> List[Tuple[str, float, str, float]]:
        """(root, total, slowest phase, its duration) for the N slowest roots."""
        return _slowest_roots(self.root_timings, n)

    def summary(self) -> str:
        lines = ["", "=== Export Timing Summary ==="]
        if self.run_timings:
            lines.append("Run:")
            for phase, duration in sorted(self.run_timings.items()):
                lines.append(f"  {phase:25s} {duration:.3f}s")

        averages = self.get_phase_averages()
        if averages:
            lines.append("")
            lines.append("Per-root averages:")
            for phase, avg in sorted(averages.items(), key=lambda x: -x[1]):
                lines.append(f"  {phase:25s} {avg:.3f}s")

        slowest = self.get_slowest_roots(3)
        if slowest:
            lines.append("")
            lines.append("Slowest roots:")
            for name, total, phase, duration in slowest:
                lines.append(f"  {name}: {total:.3f}s ({phase}: {duration:.3f}s)")

        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_timings": self.run_timings,
            "root_timings": self.root_timings,
            "phase_averages": self.get_phase_averages(),
            "slowest_roots": [
                {"name": name, "total": total, "slowest_phase": phase, "phase_duration": dur}
                for name, total, phase, dur in self.get_slowest_roots(5)
            ],
        }

    def save(self, path: Path, merge: bool = True) -> None:
        """
        Save timing data to a JSON file.

        Args:
            path: Path to JSON file
            merge: Merge with what other runs already wrote (under a file
                lock) instead of overwriting
        """
        if merge:
            self._save_merged(path)
        else:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
            logger.debug(f"Saved timing data to {path}")

    def _save_merged(self, path: Path) -> None:
        from .file_locking import locked_read_modify_write_json

        def merge_timing_data(existing: Dict[str, Any]) -> Dict[str, Any]:
            existing.setdefault("run_timings", {}).update(self.run_timings)
            existing.setdefault("root_timings", {}).update(self.root_timings)
            existing["phase_averages"] = _phase_averages(existing["root_timings"])
            existing["slowest_roots"] = [
                {"name": name, "total": total, "slowest_phase": phase, "phase_duration": dur}
                for name, total, phase, dur in _slowest_roots(existing["root_timings"], 5)
            ]
            return existing

        locked_read_modify_write_json(
            path,
            merge_timing_data,
            default=lambda: {"run_timings": {}, "root_timings": {}},
        )
        logger.debug(f"Merged timing data to {path}")


@contextmanager
def timed_phase(
    log: Optional[TimingLog],
    phase: str,
    root: Optional[str] = None,
) -> Generator[None, None, None]:
    """
    Time the enclosed block.

    Args:
        log: Where to record; nothing is recorded if None
        phase: Phase name
        root: Root name for a per-root metric, None for a run-level one

    Example:
        >>> with timed_phase(log, "walk", root="menu"):
        ...     records = await walk(...)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if log is not None:
            if root:
                log.log_root(root, phase, elapsed)
            else:
                log.log_run(phase, elapsed)
