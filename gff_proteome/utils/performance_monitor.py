#!/usr/bin/env python3

"""
Performance monitoring for the proteome extraction pipeline.

Each pipeline stage is timed and its resident memory sampled with psutil
when it starts and ends; stages also count the items they handled.
"""

import time
import logging
import psutil
from dataclasses import dataclass
from typing import Optional, Dict, Any
from contextlib import contextmanager


@dataclass
class StageMetrics:
    """Timing, memory and item count of one pipeline stage."""
    name: str
    started: float
    finished: Optional[float] = None
    items: int = 0
    peak_memory_mb: float = 0.0

    @property
    def elapsed_time(self) -> float:
        end = time.time() if self.finished is None else self.finished
        return end - self.started

    @property
    def items_per_second(self) -> float:
        elapsed = self.elapsed_time
        return self.items / elapsed if elapsed > 0 else 0.0


class PerformanceMonitor:
    """
    Collects StageMetrics for one pipeline run.

    A disabled monitor still records stage timings and counts but never
    touches psutil and logs no report.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.created = time.time()
        self.stages: Dict[str, StageMetrics] = {}
        self.current_stage: Optional[str] = None
        self._process = psutil.Process() if enabled else None

    def memory_usage_mb(self) -> float:
        """Resident memory of this process in MB, 0.0 when unavailable."""
        if self._process is None:
            return 0.0
        try:
            return self._process.memory_info().rss / 1024 / 1024
        except psutil.Error as e:
            logging.warning(f"Error getting memory usage: {e}")
            return 0.0

    def _sample(self) -> None:
        if self.current_stage is None:
            return
        metrics = self.stages[self.current_stage]
        metrics.peak_memory_mb = max(metrics.peak_memory_mb, self.memory_usage_mb())

    def start_stage(self, name: str) -> StageMetrics:
        if self.current_stage is not None:
            self.end_stage()

        self.current_stage = name
        self.stages[name] = StageMetrics(name=name, started=time.time())
        self._sample()
        logging.debug(f"Started stage: {name}")
        return self.stages[name]

    def end_stage(self) -> Optional[StageMetrics]:
        if self.current_stage is None:
            return None

        self._sample()
        metrics = self.stages[self.current_stage]
        metrics.finished = time.time()
        logging.debug(f"Completed stage {metrics.name} in {metrics.elapsed_time:.2f}s")
        self.current_stage = None
        return metrics

    def record_items(self, count: int) -> None:
        """Add to the item count of the running stage."""
        if self.current_stage is not None:
            self.stages[self.current_stage].items += count

    @contextmanager
    def stage(self, name: str):
        """Time the enclosed block as one stage and yield its metrics."""
        metrics = self.start_stage(name)
        try:
            yield metrics
        finally:
            self.end_stage()

    def peak_memory_mb(self) -> float:
        if not self.stages:
            return self.memory_usage_mb()
        return max(metrics.peak_memory_mb for metrics in self.stages.values())

    def summary(self) -> Dict[str, Any]:
        return {
            "total_elapsed_time": time.time() - self.created,
            "peak_memory_mb": self.peak_memory_mb(),
            "stages": {
                name: {
                    "elapsed_time": metrics.elapsed_time,
                    "items": metrics.items,
                    "items_per_second": metrics.items_per_second,
                    "peak_memory_mb": metrics.peak_memory_mb,
                }
                for name, metrics in self.stages.items()
            }
        }

    def log_report(self) -> None:
        """Log total time and a line per stage."""
        if not self.enabled:
            return

        summary = self.summary()
        logging.info(f"Total time: {summary['total_elapsed_time']:.2f} seconds, "
                     f"peak memory: {summary['peak_memory_mb']:.1f} MB")
        for name, stage in summary['stages'].items():
            logging.info(f"  {name}: {stage['elapsed_time']:.2f}s, {stage['items']} items, "
                         f"{stage['peak_memory_mb']:.1f} MB")
