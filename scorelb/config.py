import json
from pathlib import Path
from typing import Any

from .node import Node
from .options import Options


def parse_config(data: dict[str, Any]) -> tuple[list[Node], Options]:
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    nodes = [Node.from_dict(item) for item in data.get("nodes", [])]
    options = Options.from_dict(data.get("options", data.get("opt")))
    return nodes, options


def load_config(path: str | Path) -> tuple[list[Node], Options]:
    with open(path, encoding="utf-8") as f:
        return parse_config(json.load(f))
