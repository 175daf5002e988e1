"""
Prompt markdown -> structured JSON document.

Output shape:
  {metadata: {title, description, version, lastModified, sha256, contentLength},
   sections: {key: text},
   configuration: ParsedConfiguration (camelCase)}
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import CamelModel, PromptDocument
from .parser import parse_prompt_text
from .sections import extract_sections, section_text, split_front_matter
from .utils import norm_text, utc_now_iso, write_json_document

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"

_H1_RE = re.compile(r"^#\s+(.+?)\s*#*\s*$")


class PromptMetadata(CamelModel):
    title: str
    description: str = ""
    version: str = DEFAULT_VERSION
    last_modified: str
    sha256: str
    content_length: int


class ConvertedPrompt(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    metadata: PromptMetadata
    sections: Dict[str, str] = Field(default_factory=dict)
    configuration: Dict[str, Any] = Field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _first_h1(lines: List[str]) -> Optional[str]:
    in_fence = False
    for line in lines:
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            continue
        if not in_fence:
            m = _H1_RE.match(line)
            if m:
                return norm_text(m.group(1))
    return None


def _first_prose_line(lines: List[str]) -> str:
    in_fence = False
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence or not stripped:
            continue
        if stripped.startswith(("#", "-", "*", "|", ">")) or re.match(r"^\d+\.\s", stripped):
            continue
        return norm_text(stripped)
    return ""


def convert_prompt(document: PromptDocument, *, last_modified: Optional[str] = None) -> ConvertedPrompt:
    front, body = split_front_matter(document.content)
    lines = body.splitlines()

    title = front.get("title") or _first_h1(lines) or "Untitled prompt"
    description = front.get("description") or _first_prose_line(lines)
    sections = extract_sections(body)

    return ConvertedPrompt(
        metadata=PromptMetadata(
            title=str(title),
            description=str(description),
            version=str(front.get("version", DEFAULT_VERSION)),
            last_modified=last_modified or utc_now_iso(),
            sha256=document.content_hash,
            content_length=len(document.content),
        ),
        sections={key: section_text(sections, key) for key in sections},
        # Full text, as the detector parses it.
        configuration=parse_prompt_text(document.content).model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def convert_prompt_file(prompt_path: str | Path, output_path: str | Path) -> Path:
    document = PromptDocument.from_path(prompt_path)
    mtime = Path(prompt_path).stat().st_mtime
    last_modified = datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat()
    converted = convert_prompt(document, last_modified=last_modified)
    path = write_json_document(output_path, converted.to_json_dict())
    logger.info(f"Converted {prompt_path} -> {path}")
    return path
