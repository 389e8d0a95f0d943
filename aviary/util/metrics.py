import numpy as np


class MostRecentNVar:
    """Percentiles over the most recent N samples of a phase timing.

    A pass that slows down as the population grows shows up in p95/p99
    long before the median moves.
    """

    def __init__(self, num_samples: int = 1000) -> None:
        self.num_samples = num_samples
        self.samples = np.zeros(num_samples, dtype=np.float32)
        self.count = 0
        self.write_index = 0

    def record(self, value: float) -> None:
        self.samples[self.write_index] = value
        self.write_index = (self.write_index + 1) % self.num_samples
        self.count += 1

    @property
    def sample_count(self) -> int:
        return min(self.count, self.num_samples)

    @property
    def p50(self) -> float:
        return self.get_percentiles()[0]

    def _valid_samples(self) -> np.ndarray:
        if self.count <= self.num_samples:
            return self.samples[: self.count]
        # Wrapped: oldest sample sits at write_index.
        return np.roll(self.samples, -self.write_index)

    def get_percentiles(self) -> tuple[float, float, float]:
        """(p50, p95, p99), all zero before the first sample."""
        valid = self._valid_samples()
        if len(valid) == 0:
            return (0.0, 0.0, 0.0)
        p50, p95, p99 = np.percentile(valid, [50, 95, 99])
        return (float(p50), float(p95), float(p99))

    def __str__(self) -> str:
        p50, p95, p99 = self.get_percentiles()
        return f"p50={p50:.2f} p95={p95:.2f} p99={p99:.2f}"
