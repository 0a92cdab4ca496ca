"""
Loading and parsing image information documents.

Reads info.json documents from local files and parses them into Pydantic
models. Nothing here touches the network: callers that fetch documents pass
the parsed JSON to parse_descriptor().
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from .models import ServiceDescriptor


def load_json(path: str | Path) -> Any:
    """
    Load JSON from a file path, or from standard input when ``path`` is "-".

    Parameters:
        path: File path

    Returns:
        Parsed JSON value

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the JSON is invalid

    Example:
        >>> data = load_json("/path/to/info.json")
    """
    if str(path) == "-":
        return json.load(sys.stdin)
    p = Path(path).expanduser()
    return json.loads(p.read_text(encoding="utf-8"))


def parse_descriptor(data: dict[str, Any]) -> ServiceDescriptor:
    """
    Parse an info.json dict into a ServiceDescriptor.

    Parameters:
        data: info.json as dictionary

    Returns:
        ServiceDescriptor model

    Raises:
        pydantic.ValidationError: If the JSON doesn't match the descriptor schema

    Example:
        >>> info = parse_descriptor(load_json("info.json"))
        >>> print(info.profile, info.width, info.height)
    """
    return ServiceDescriptor.model_validate(data)


def load_descriptor(path: str | Path) -> ServiceDescriptor:
    """
    Load and parse an info.json document from a file.

    Combines load_json() and parse_descriptor() in one call.

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the JSON is invalid
        pydantic.ValidationError: If the JSON doesn't match the descriptor schema
    """
    return parse_descriptor(load_json(path))
