"""
Markdown section extraction.

Key idea:
- Walk the document line by line, tracking fenced code blocks so that '#'
  lines inside code are never taken for headings.
- Keep a stack of open headings; a body line belongs to every open section,
  so a section spans its sub-sections up to the next heading of equal or
  higher level.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

import yaml

from .errors import PromptParseError
from .utils import section_key

HEADER_KEY = "header"
GOAL_KEY = "goal"

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
_FENCE_RE = re.compile(r"^\s*```")
_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def _parse_heading(line: str) -> Tuple[int, str] | None:
    m = _HEADING_RE.match(line)
    if not m:
        return None
    return len(m.group(1)), m.group(2)


def _trim_blank_edges(lines: List[str]) -> List[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def extract_sections(text: str) -> Dict[str, List[str]]:
    """
    Map normalized heading keys to the non-heading lines under them.

    - lines before the first heading -> 'header'
    - a leading H1 becomes the synthetic 'goal' section (title + preamble)
    - fenced code is copied verbatim, fences included
    """
    sections: Dict[str, List[str]] = {}
    # (level, key, closes_on_any_heading); header and goal are closed by any heading.
    stack: List[Tuple[int, str, bool]] = [(0, HEADER_KEY, True)]
    in_fence = False
    seen_heading = False

    for line in text.splitlines():
        if _FENCE_RE.match(line):
            in_fence = not in_fence
        elif not in_fence:
            heading = _parse_heading(line)
            if heading is not None:
                level, title = heading
                stack = [entry for entry in stack if not entry[2] and entry[0] < level]
                if not seen_heading and level == 1:
                    stack.append((level, GOAL_KEY, True))
                    sections.setdefault(GOAL_KEY, []).append(title)
                else:
                    key = section_key(title) or f"section_{level}"
                    stack.append((level, key, False))
                    sections.setdefault(key, [])
                seen_heading = True
                continue

        for _, key, _ in stack:
            sections.setdefault(key, []).append(line)

    if not seen_heading:
        return {HEADER_KEY: _trim_blank_edges(sections.get(HEADER_KEY, []))}

    trimmed = {key: _trim_blank_edges(lines) for key, lines in sections.items()}
    if not trimmed.get(HEADER_KEY):
        trimmed.pop(HEADER_KEY, None)
    return trimmed


def section_text(sections: Dict[str, List[str]], key: str) -> str:
    return "\n".join(sections.get(key, []))


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Split an optional leading '---' YAML block from the markdown body.
    Returns ({}, text) when there is none.
    """
    m = _FRONT_MATTER_RE.match(text)
    if not m:
        return {}, text
    try:
        data = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise PromptParseError(f"Malformed front matter: {e}") from e
    if not isinstance(data, dict):
        raise PromptParseError("Front matter must be a YAML mapping")
    return data, text[m.end():]
