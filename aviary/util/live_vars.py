"""Named timing metrics for the scheduler's phases.

The scheduler registers one metric per phase and wraps each phase in
`record_time_live_variable`; the CLI prints the percentiles at exit.
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import contextmanager, nullcontext, suppress
from dataclasses import dataclass
from time import perf_counter
from typing import NamedTuple

from .metrics import MostRecentNVar


class MetricSpec(NamedTuple):
    name: str
    description: str
    num_samples: int = 100


@dataclass
class LiveMetric:
    name: str
    description: str
    stats: MostRecentNVar

    def get_value(self) -> str:
        if self.stats.sample_count == 0:
            return "No samples"
        return str(self.stats)


class LiveVariableRegistry:
    """Registry of phase metrics.

    When ``strict`` is ``True`` (the default), recording to an unregistered
    metric raises. Test fixtures that clear the registry set ``strict`` to
    ``False`` so timing blocks in production code don't break unrelated tests.
    """

    def __init__(self) -> None:
        self._metrics: dict[str, LiveMetric] = {}
        self.strict: bool = True

    def register_metric(
        self, name: str, description: str = "", num_samples: int = 1000
    ) -> LiveMetric:
        if name in self._metrics:
            raise ValueError(f"Metric '{name}' already registered")
        metric = LiveMetric(name, description, MostRecentNVar(num_samples))
        self._metrics[name] = metric
        return metric

    def register_metrics(self, specs: Sequence[MetricSpec]) -> None:
        """Register the metrics that are not registered yet."""
        for spec in specs:
            if spec.name not in self._metrics:
                self.register_metric(spec.name, spec.description, spec.num_samples)

    def get_metric(self, name: str) -> LiveMetric | None:
        return self._metrics.get(name)

    def metrics(self) -> list[LiveMetric]:
        return sorted(self._metrics.values(), key=lambda m: m.name)

    def clear(self) -> None:
        self._metrics.clear()

    def record_metric(self, name: str, value: float) -> None:
        """Record one sample.

        Raises:
            KeyError: If the metric is not registered.
        """
        metric = self._metrics.get(name)
        if metric is None:
            raise KeyError(f"Metric '{name}' is not registered")
        metric.stats.record(value)


live_variable_registry = LiveVariableRegistry()


@contextmanager
def record_time_live_variable(metric_name: str):
    """Record elapsed wall-clock time (ms) of the block to the named metric."""
    start = perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (perf_counter() - start) * 1000
        ctx = nullcontext() if live_variable_registry.strict else suppress(KeyError)
        with ctx:
            live_variable_registry.record_metric(metric_name, elapsed_ms)
