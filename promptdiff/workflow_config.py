"""
Persisted workflow configuration (workflow-config.json).

The document carries the six ParsedConfiguration sections under their
hyphenated names next to any other keys the pipeline keeps there. The parser
output is only merged in on an explicit update.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .differ import section_differences
from .errors import StateCorruptedError
from .models import Difference, ParsedConfiguration
from .utils import read_json_document, write_json_document

logger = logging.getLogger(__name__)


@dataclass
class ConfigUpdate:
    document: Dict[str, Any]
    changes: Dict[str, List[Difference]] = field(default_factory=dict)

    @property
    def changed_sections(self) -> List[str]:
        return list(self.changes.keys())


class WorkflowConfigStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Dict[str, Any]:
        """Raw document; {} when the file does not exist yet."""
        data = read_json_document(self.path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StateCorruptedError(f"Workflow configuration {self.path} must be a JSON object")
        return data

    def load_configuration(self) -> ParsedConfiguration:
        return ParsedConfiguration.from_persisted(self.read())

    def update(self, parsed: ParsedConfiguration) -> ConfigUpdate:
        """Merge the parsed sections into the document and write it back."""
        document = self.read()
        previous = ParsedConfiguration.from_persisted(document)
        changes = section_differences(parsed, previous)

        merged = dict(document)
        merged.update(parsed.to_persisted())
        write_json_document(self.path, merged)
        logger.info(f"Updated workflow configuration {self.path}: {len(changes)} section(s) changed")
        return ConfigUpdate(document=merged, changes=changes)
