from __future__ import annotations

import enum
import logging
import time
from typing import Callable

import httpx

from searchapi.common.config import settings
from searchapi.common.errors import BackendError, EngineUnavailableError
from searchapi.engine.base import SearchEngine

log = logging.getLogger(__name__)


class EngineBackend(str, enum.Enum):
    ELASTICSEARCH = "elasticsearch"
    MEMORY = "memory"


class ConnectionState(str, enum.Enum):
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


class EngineConnector:
    """Connect to the engine once at startup, retrying with a fixed delay.

    Only connection failures from ``factory`` or ``ping`` are retried; anything
    else propagates. ``max_attempts <= 0`` retries forever.
    """

    def __init__(
        self,
        factory: Callable[[], SearchEngine],
        delay_seconds: float | None = None,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.factory = factory
        self.delay_seconds = settings.connect_retry_delay_seconds if delay_seconds is None else delay_seconds
        self.max_attempts = settings.connect_max_attempts if max_attempts is None else max_attempts
        self._sleep = sleep
        self.state = ConnectionState.CONNECTING
        self.attempts = 0
        self.engine: SearchEngine | None = None

    def connect(self) -> SearchEngine:
        while self.state is ConnectionState.CONNECTING:
            self.step()
        if self.state is ConnectionState.FAILED:
            raise EngineUnavailableError(f"gave up after {self.attempts} attempts")
        assert self.engine is not None
        return self.engine

    def step(self) -> ConnectionState:
        if self.state is not ConnectionState.CONNECTING:
            return self.state

        self.attempts += 1
        engine: SearchEngine | None = None
        try:
            engine = self.factory()
            engine.ping()
        except (BackendError, httpx.HTTPError, OSError) as e:
            if engine is not None:
                engine.close()
            log.warning("engine_connect_failed", extra={"attempt": self.attempts, "error": str(e)})
            if 0 < self.max_attempts <= self.attempts:
                self.state = ConnectionState.FAILED
            else:
                self._sleep(self.delay_seconds)
            return self.state

        self.engine = engine
        self.state = ConnectionState.READY
        log.info("engine_ready", extra={"attempt": self.attempts})
        return self.state


def build_engine(backend: str | None = None) -> SearchEngine:
    kind = EngineBackend(backend or settings.engine_backend)
    if kind is EngineBackend.MEMORY:
        from searchapi.engine.memory import MemoryEngine

        return MemoryEngine()

    from searchapi.engine.elastic import ElasticsearchEngine

    return ElasticsearchEngine()


def connect_engine(backend: str | None = None) -> SearchEngine:
    # unknown backends fail here, before any retrying
    backend = EngineBackend(backend or settings.engine_backend).value
    return EngineConnector(lambda: build_engine(backend)).connect()
