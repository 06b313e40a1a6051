import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from aiohttp import ClientSession

from scorelb import (
    BalancerError,
    Node,
    Options,
    Prober,
    ProbeStats,
)
from scorelb.config import parse_config

logger = logging.getLogger(__name__)


class NodeOp(enum.Enum):
    UNAVAILABLE = 0
    AVAILABLE = 1


@dataclass
class NodeUpdate:
    node: Node
    op: NodeOp


class Balancer:
    """Picks the lowest-scoring node from a fixed set of probed backends.

    A refresh pass probes every node in order and, when
    ``options.cache_optimal_node`` is set, remembers the best error-free node
    it has seen. The cached node is only ever replaced by a strictly lower
    scoring healthy node; it is not evicted when it degrades, and by default
    ``select_optimal`` returns it without checking availability.
    """

    def __init__(
        self,
        nodes: Iterable[Node] | None = None,
        options: Options | None = None,
        stats: ProbeStats | None = None,
    ) -> None:
        self.nodes: list[Node] = list(nodes or [])
        self.options = options or Options()
        self.cached_node: Node | None = None
        self.stats = stats or ProbeStats()
        self._lock = asyncio.Lock()
        self._watch_task: asyncio.Task | None = None
        self._subscribers: list[asyncio.Queue] = []

    @classmethod
    def empty(cls, options: Options | None = None) -> "Balancer":
        return cls([], options)

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> "Balancer":
        nodes, options = parse_config(data)
        return cls(nodes, options)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self, node: Node, op: NodeOp):
        update = NodeUpdate(node, op)
        for queue in self._subscribers:
            queue.put_nowait(update)

    async def refresh_once(self):
        async with self._lock:
            nodes = list(self.nodes)

        async with ClientSession() as session:
            prober = Prober(self.options, session, self.stats)
            for node in nodes:
                was_error = node.is_error() if node is not None else True
                try:
                    await prober.probe(node, self._lock)
                except BalancerError as e:
                    logger.warning(f"Probe failed: {e}")
                if node is None:
                    continue

                if was_error != node.is_error():
                    op = NodeOp.UNAVAILABLE if node.is_error() else NodeOp.AVAILABLE
                    logger.info(f"Node {node.endpoint} is now {op.name.lower()}")
                    self._publish(node, op)

                if self.options.cache_optimal_node and not node.is_error():
                    async with self._lock:
                        self._update_cache(node)

    def _update_cache(self, node: Node):
        if self.cached_node is None or node.score() < self.cached_node.score():
            logger.debug(f"Cached optimal node: {node.endpoint} (score {node.score()})")
            self.cached_node = node

    async def watch(self, interval: float):
        while True:
            await self.refresh_once()
            await asyncio.sleep(interval)

    async def start_watch(self, interval: float):
        if self._watch_task is None:
            logger.info(f"Watching {len(self.nodes)} nodes every {interval}s")
            self._watch_task = asyncio.create_task(self.watch(interval))

    async def stop_watch(self):
        if self._watch_task:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None
            logger.info("Stopped watching nodes")

    def watch_forever(self, interval: float):
        """Run the refresh loop in the calling thread until the process ends."""
        asyncio.run(self.watch(interval))

    async def select_optimal(self, only_available: bool = True) -> Node | None:
        async with self._lock:
            cached = self.cached_node
            if cached is not None and (
                self.options.cache_bypasses_availability
                or not only_available
                or not cached.is_error()
            ):
                return cached

            best = None
            for node in self.nodes:
                if node is None or (only_available and node.is_error()):
                    continue
                if best is None or node.score() < best.score():
                    best = node
            return best

    async def show(self) -> dict[str, Any]:
        async with self._lock:
            return {
                node.endpoint: {**node.to_dict(), "cached": node is self.cached_node}
                for node in self.nodes
                if node is not None
            }
