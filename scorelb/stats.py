import asyncio
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

LATENCY_WINDOW = 1024


@dataclass
class LatencyHistogram:
    values: deque = field(default_factory=lambda: deque(maxlen=LATENCY_WINDOW))
    _count: int = 0

    def record(self, value: float):
        self.values.append(value)
        self._count += 1

    @property
    def count(self) -> int:
        return self._count

    def percentiles(self, *percentiles: float) -> dict[str, float]:
        if not self.values:
            return {f"p{int(p)}": 0.0 for p in percentiles}
        ordered = sorted(self.values)
        return {
            f"p{int(p)}": ordered[min(int(len(ordered) * p / 100), len(ordered) - 1)]
            for p in percentiles
        }


class ProbeStats:
    """Counts probe outcomes and probe latency per node endpoint."""

    def __init__(self) -> None:
        self._outcomes: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._latency: dict[str, LatencyHistogram] = defaultdict(LatencyHistogram)
        self._lock = asyncio.Lock()

    async def record_probe(self, endpoint: str, outcome: str, latency_ms: float):
        async with self._lock:
            self._outcomes[endpoint][outcome] += 1
            self._latency[endpoint].record(latency_ms)

    async def snapshot(self) -> dict[str, Any]:
        async with self._lock:
            return {
                endpoint: {
                    "outcomes": dict(outcomes),
                    "latency_ms": {
                        "count": self._latency[endpoint].count,
                        **self._latency[endpoint].percentiles(50, 90, 99),
                    },
                }
                for endpoint, outcomes in self._outcomes.items()
            }

    async def export_prometheus(self) -> str:
        async with self._lock:
            lines = []
            for endpoint, outcomes in self._outcomes.items():
                for outcome, count in outcomes.items():
                    lines.append(
                        f'scorelb_probe_total{{endpoint="{endpoint}",outcome="{outcome}"}} {count}'
                    )
            for endpoint, hist in self._latency.items():
                for p, v in hist.percentiles(50, 90, 99).items():
                    lines.append(
                        f'scorelb_probe_latency_ms_{p}{{endpoint="{endpoint}"}} {round(v, 3)}'
                    )
            return "\n".join(lines)
