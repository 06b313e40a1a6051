import asyncio
import enum
import json
import logging
import time
from dataclasses import dataclass, field

import aiohttp
from aiohttp import ClientSession

from .errors import NilNodeError, NodeUnavailableError
from .node import STATUS_UNAVAILABLE, Node
from .options import Options
from .stats import ProbeStats

logger = logging.getLogger(__name__)


class ProbeOutcome(enum.Enum):
    OK = "ok"
    TRANSPORT_ERROR = "transport_error"
    STATUS_ERROR = "status_error"
    DECODE_ERROR = "decode_error"


@dataclass
class ProbeResult:
    outcome: ProbeOutcome
    status: int = STATUS_UNAVAILABLE
    values: dict[str, float] = field(default_factory=dict)
    latency_ms: float = 0.0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ProbeOutcome.OK

    def describe(self) -> str:
        if self.outcome is ProbeOutcome.STATUS_ERROR:
            return f"status {self.status}"
        if self.error:
            return f"{self.outcome.value}: {self.error}"
        return self.outcome.value


def decode_metrics(body: bytes) -> dict[str, float]:
    """Decode a flat JSON object of metric name to number.

    A ``null`` body or ``null`` value means no update for those metrics.
    Every other malformed input raises ``ValueError``.
    """
    try:
        data = json.loads(body)
    except RecursionError as e:
        raise ValueError("JSON nested too deeply") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    values = {}
    for name, value in data.items():
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"metric {name!r} is not a number")
        try:
            values[name] = float(value)
        except OverflowError as e:
            raise ValueError(f"metric {name!r} is out of range") from e
    return values


class Prober:
    def __init__(
        self,
        options: Options,
        session: ClientSession | None = None,
        stats: ProbeStats | None = None,
    ) -> None:
        self.options = options
        self.stats = stats
        self._session = session

    async def fetch(self, node: Node) -> ProbeResult:
        """GET the node's metrics route without touching the node."""
        if self._session is not None:
            return await self._fetch(self._session, node)
        async with ClientSession() as session:
            return await self._fetch(session, node)

    async def _fetch(self, session: ClientSession, node: Node) -> ProbeResult:
        url = node.endpoint + self.options.route
        start_time = time.time()
        try:
            async with session.get(
                url,
                headers=self.options.headers(),
                timeout=aiohttp.ClientTimeout(total=self.options.timeout),
            ) as resp:
                status = resp.status
                if status >= 400:
                    return ProbeResult(
                        ProbeOutcome.STATUS_ERROR,
                        status,
                        latency_ms=(time.time() - start_time) * 1000,
                    )
                # A failed or timed out body read is a transport error.
                body = await resp.read()
                try:
                    values = decode_metrics(body)
                except ValueError as e:
                    return ProbeResult(
                        ProbeOutcome.DECODE_ERROR,
                        status,
                        latency_ms=(time.time() - start_time) * 1000,
                        error=str(e),
                    )
                return ProbeResult(
                    ProbeOutcome.OK,
                    status,
                    values,
                    latency_ms=(time.time() - start_time) * 1000,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            return ProbeResult(
                ProbeOutcome.TRANSPORT_ERROR,
                latency_ms=(time.time() - start_time) * 1000,
                error=str(e) or type(e).__name__,
            )

    @staticmethod
    def apply(node: Node, result: ProbeResult):
        if result.outcome in (ProbeOutcome.TRANSPORT_ERROR, ProbeOutcome.DECODE_ERROR):
            # An unreadable success response counts as no contact at all.
            node.last_status = STATUS_UNAVAILABLE
            return
        node.last_status = result.status
        if result.outcome is ProbeOutcome.STATUS_ERROR:
            return
        for name, value in result.values.items():
            metric = node.metrics.get(name)
            if metric is not None:
                metric.value = value

    async def probe(self, node: Node | None, lock: asyncio.Lock | None = None) -> ProbeResult:
        if node is None:
            raise NilNodeError()

        result = await self.fetch(node)
        if lock is None:
            self.apply(node, result)
        else:
            async with lock:
                self.apply(node, result)

        if self.stats:
            await self.stats.record_probe(
                node.endpoint, result.outcome.value, result.latency_ms
            )
        logger.debug(
            f"Probe: {node.endpoint} - {result.describe()} ({result.latency_ms:.2f}ms)"
        )

        if not result.ok:
            raise NodeUnavailableError(node.endpoint, result)
        return result
