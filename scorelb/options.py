from dataclasses import dataclass, fields
from typing import Any

NODE_TIMEOUT = 15.0

_CAMEL_KEYS = {
    "userAgent": "user_agent",
    "cacheOptimalNode": "cache_optimal_node",
    "cacheBypassesAvailability": "cache_bypasses_availability",
}


@dataclass(frozen=True)
class Options:
    user_agent: str = ""
    authorization: str = ""
    cache_optimal_node: bool = False
    route: str = ""
    timeout: float = NODE_TIMEOUT
    # A warm cache ignores only_available unless this is turned off.
    cache_bypasses_availability: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Options":
        types = {f.name: f.type for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in types:
                raise ValueError(f"unknown option: {key}")
            expected = types[name]
            if expected is float:
                valid = isinstance(value, (int, float)) and not isinstance(value, bool)
            else:
                valid = isinstance(value, expected)
            if not valid:
                raise ValueError(
                    f"option {key} must be {expected.__name__}, got {type(value).__name__}"
                )
            kwargs[name] = float(value) if expected is float else value
        return cls(**kwargs)

    def headers(self) -> dict[str, str]:
        headers = {}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if self.authorization:
            headers["Authorization"] = self.authorization
        return headers
