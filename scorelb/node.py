from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

STATUS_UNAVAILABLE = 0


class Metric:
    """A named signal contributing ``value * weight`` to its node's score."""

    __slots__ = ("_weight", "value")

    def __init__(self, weight: int = 0, value: float = 0.0):
        if weight < 0:
            raise ValueError(f"metric weight must be >= 0, got {weight}")
        self._weight = int(weight)
        self.value = float(value)

    @property
    def weight(self) -> int:
        return self._weight

    def score(self) -> float:
        return self.value * self._weight

    def __repr__(self) -> str:
        return f"Metric(weight={self._weight}, value={self.value})"


@dataclass(eq=False)
class Node:
    endpoint: str
    metrics: Mapping[str, Metric] = field(default_factory=dict)
    last_status: int = STATUS_UNAVAILABLE

    def __post_init__(self):
        # Metric names are fixed once the node exists; only values change.
        self.metrics = MappingProxyType(dict(self.metrics))

    def is_available(self) -> bool:
        return self.last_status != STATUS_UNAVAILABLE

    def is_error(self) -> bool:
        return not self.is_available() or self.last_status >= 400

    def score(self) -> float:
        return sum(metric.score() for metric in self.metrics.values())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        endpoint = data.get("endpoint", data.get("uri"))
        if not endpoint:
            raise ValueError("node requires an endpoint")
        metrics = {}
        for name, entry in (data.get("metrics", data.get("fs")) or {}).items():
            if isinstance(entry, dict):
                weight = entry.get("weight", entry.get("mod", 0))
                metrics[name] = Metric(weight, entry.get("value", 0.0))
            else:
                metrics[name] = Metric(entry)
        return cls(endpoint, metrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_status": self.last_status,
            "available": self.is_available(),
            "error": self.is_error(),
            "score": self.score(),
            "metrics": {
                name: {"weight": m.weight, "value": m.value}
                for name, m in self.metrics.items()
            },
        }
