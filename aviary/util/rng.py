"""Named random streams derived from one master seed.

Each domain ("agents.spawn", "ai.execution.7", "ai.hunt.7", ...) gets its own
`Random`, so how much one subsystem draws never shifts what another sees.
"""

from __future__ import annotations

import threading
import zlib
from random import Random
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from aviary.types import RandomSeed


class RNGStream:
    """Cacheable handle to the current Random for one domain.

    The underlying Random is looked up on every call, so module-level
    references stay valid across ``rng.reset()``.
    """

    def __init__(self, provider: RNGProvider, domain: str) -> None:
        self._provider = provider
        self._domain = domain

    def _rng(self) -> Random:
        return self._provider._get_raw(self._domain)

    def random(self) -> float:
        return self._rng().random()

    def uniform(self, a: float, b: float) -> float:
        return self._rng().uniform(a, b)

    def gauss(self, mu: float, sigma: float) -> float:
        return self._rng().gauss(mu, sigma)


# Accept either a plain Random or a stream wherever randomness is injected.
RNG: TypeAlias = Random | RNGStream


class RNGProvider:
    """Hands out one Random per domain, derived from the master seed."""

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._streams: dict[str, Random] = {}
        self._proxies: dict[str, RNGStream] = {}
        # Phases may draw from worker threads; stream creation must not race.
        self._lock = threading.Lock()

    def get(self, domain: str) -> RNGStream:
        with self._lock:
            if domain not in self._proxies:
                self._proxies[domain] = RNGStream(self, domain)
            return self._proxies[domain]

    def _get_raw(self, domain: str) -> Random:
        stream = self._streams.get(domain)
        if stream is not None:
            return stream
        with self._lock:
            return self._create(domain)

    def _create(self, domain: str) -> Random:
        if domain not in self._streams:
            if self._master_seed is None:
                self._streams[domain] = Random()
            else:
                # crc32, not hash(): hash() is salted per interpreter session.
                derived_seed = zlib.crc32(f"{self._master_seed}:{domain}".encode())
                self._streams[domain] = Random(derived_seed)
        return self._streams[domain]

    def reset(self, master_seed: RandomSeed = None) -> None:
        """Drop all streams and re-derive them lazily from ``master_seed``."""
        self._master_seed = master_seed
        self._streams.clear()


_provider: RNGProvider | None = None


def init(master_seed: RandomSeed = None) -> None:
    """Initialize (or re-seed) the global provider."""
    global _provider
    if _provider is not None:
        _provider.reset(master_seed)
    else:
        _provider = RNGProvider(master_seed)


def get(domain: str) -> RNGStream:
    """Return the stream for ``domain``, auto-initializing unseeded if needed."""
    global _provider
    if _provider is None:
        _provider = RNGProvider(None)
    return _provider.get(domain)


def reset(master_seed: RandomSeed = None) -> None:
    if _provider is None:
        raise RuntimeError("RNG not initialized - call rng.init() first")
    _provider.reset(master_seed)
