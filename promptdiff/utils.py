"""
Utilities: normalization, hashing, canonical JSON and JSON document I/O.
"""

from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .errors import StateCorruptedError

_SOFT_HYPHEN = "\u00ad"


def norm_text(s: str) -> str:
    """Light normalization for display."""
    s = s.replace(_SOFT_HYPHEN, "")
    s = re.sub(r"\s+", " ", s).strip()
    return s


def section_key(title: str) -> str:
    """
    Normalize a heading into a section key:
    lower-case, non-alphanumeric runs -> '_', no leading/trailing '_'.
    """
    s = norm_text(title).lower()
    s = re.sub(r"[^a-z0-9]+", "_", s)
    return s.strip("_")


def slugify(s: str) -> str:
    """Hyphenated key for link labels ("Azure Storage" -> "azure-storage")."""
    s = norm_text(s).lower()
    s = re.sub(r"[^a-z0-9]+", "-", s)
    return s.strip("-")


def sha256_hex(text: str) -> str:
    """SHA-256 of the UTF-8 bytes of text."""
    return sha256_bytes_hex(text.encode("utf-8"))


def sha256_bytes_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def canonical_json(value: Any) -> str:
    """
    Deterministic serialization used for equality checks.
    Same value -> same string, regardless of dict insertion order.
    """
    return json.dumps(value, sort_keys=True, ensure_ascii=True, separators=(",", ":"), default=str)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def file_timestamp() -> str:
    """Sortable timestamp safe for file names (2025-07-14_10-30-00_123456)."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S_%f")


def read_json_document(path: str | Path) -> Optional[Any]:
    """
    Read a whole JSON document.
    Returns None when the file does not exist; invalid JSON is a hard failure.
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise StateCorruptedError(f"Invalid JSON document {path}: {e}") from e


def write_json_document(path: str | Path, data: Any) -> Path:
    """Write a whole JSON document (indent 2), creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path
