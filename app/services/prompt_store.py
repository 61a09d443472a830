"""JSON prompt catalog rendered with ``string.Template``."""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Any


PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


@lru_cache(maxsize=1)
def load_catalog() -> dict[str, Any]:
    catalog = json.loads(PROMPTS_PATH.read_text(encoding="utf-8"))
    if not isinstance(catalog, dict):
        raise ValueError("Prompt catalog must be a JSON object.")
    return catalog


def render_prompt(key: str, **values: Any) -> str:
    """Render the template stored under a dotted ``key``."""
    entry: Any = load_catalog()
    for part in key.split("."):
        if not isinstance(entry, dict) or part not in entry:
            raise KeyError(f"Prompt key not found: {key}")
        entry = entry[part]
    if not isinstance(entry, str):
        raise TypeError(f"Prompt key must map to a string: {key}")
    try:
        return Template(entry).substitute(**values)
    except KeyError as exc:
        raise KeyError(f"Missing value {exc.args[0]!r} for prompt {key!r}") from exc


def render_messages(key: str, **values: Any) -> list[dict[str, str]]:
    """Render a ``{system, user}`` prompt pair into chat messages."""
    return [
        {"role": "system", "content": render_prompt(f"{key}.system", **values)},
        {"role": "user", "content": render_prompt(f"{key}.user", **values)},
    ]
