"""
Proposal payload files.

Payloads are advisory JSON records of what was encoded, written to
``<directory>/<slug>-<unix-ms>.json`` and never read back by the encoder.
"""
from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Any

from daokit.errors import ArgumentMismatch, MissingConfiguration

logger = logging.getLogger(__name__)

__all__ = ["save_payload", "load_payload", "read_json", "slugify"]

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_RE.sub("-", name.lower()).strip("-")
    return slug or "proposal"


def save_payload(payload: dict[str, Any], name: str, directory: str | Path = "proposals") -> Path:
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{slugify(name)}-{int(time.time() * 1000)}.json"
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    logger.info("Payload saved to %s", path)
    return path


def read_json(path: str | Path, what: str = "JSON file") -> Any:
    """
    Read and parse a JSON file.

    Raises:
        MissingConfiguration: the file cannot be read
        ArgumentMismatch: the file is not valid JSON
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise MissingConfiguration(f"Cannot read {what} {path}: {e.strerror or e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ArgumentMismatch(f"{what} {path} is not valid JSON: {e}") from e


def load_payload(path: str | Path) -> dict[str, Any]:
    payload = read_json(path, "payload")
    if not isinstance(payload, dict):
        raise ArgumentMismatch(f"payload {path} must be a JSON object")
    return payload
