"""
Apply detected prompt changes to downstream generator modules.

Each change type has a table of targets: a module glob under the targets
directory and the constant assignment (``NAME = "value"`` / ``NAME = 5``)
that mirrors one configuration field. Failures are collected per change;
the remaining changes still run.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .errors import UpdateError
from .models import (
    Change,
    ChangeType,
    DifferenceType,
    ManualReviewItem,
    Severity,
    UpdateResult,
    UpdateSummary,
)
from .utils import canonical_json, file_timestamp, utc_now_iso, write_json_document

logger = logging.getLogger(__name__)

SUMMARY_PREFIX = "update-summary-"


@dataclass(frozen=True)
class UpdateTarget:
    change_type: ChangeType
    detail_key: str
    value_path: Tuple[str, ...]
    module_glob: str
    constant: str
    description: str
    transform: Optional[Callable[[Any], Any]] = None

    def value_in(self, detail_value: Any) -> Any:
        node = detail_value
        for part in self.value_path:
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node


def _required_label(fmt: str) -> str:
    # "Required or Optional" -> "Required"
    return fmt.split(" or ")[0]


UPDATE_TARGETS: List[UpdateTarget] = [
    UpdateTarget(
        ChangeType.SOURCES, "engineering", ("azmcp-commands", "url"),
        "data-extractors/azmcp-commands-extractor.*", "AZMCP_COMMANDS_URL", "Updated azmcp-commands URL",
    ),
    UpdateTarget(
        ChangeType.SOURCES, "engineering", ("e2e-test-prompts", "url"),
        "data-extractors/parameter-extractor.*", "E2E_PROMPTS_URL", "Updated e2e test prompts URL",
    ),
    UpdateTarget(
        ChangeType.SOURCES, "documentation", ("references", "tools-json", "url"),
        "data-extractors/tools-json-processor.*", "TOOLS_JSON_URL", "Updated tools.json URL",
    ),
    UpdateTarget(
        ChangeType.CONTENT_RULES, "parameters", ("format",),
        "content-builders/parameter-table-builder.*", "REQUIRED_LABEL", "Updated parameter table formatting rules",
        _required_label,
    ),
    UpdateTarget(
        ChangeType.CONTENT_RULES, "headers", ("case",),
        "content-builders/operation-builder.*", "HEADER_CASE", "Updated header formatting rules",
    ),
    UpdateTarget(
        ChangeType.CONTENT_RULES, "markdown", ("bullets",),
        "content-builders/operation-builder.*", "BULLET_STYLE", "Updated markdown bullet style",
    ),
    UpdateTarget(
        ChangeType.VALIDATION_RULES, "content", ("max-landing-page-tools",),
        "quality-controllers/content-validator.*", "MAX_LANDING_PAGE_TOOLS", "Updated landing page tool limit",
    ),
    UpdateTarget(
        ChangeType.VALIDATION_RULES, "content", ("example-format",),
        "quality-controllers/content-validator.*", "EXAMPLE_FORMAT", "Updated example prompt format rule",
    ),
    UpdateTarget(
        ChangeType.VALIDATION_RULES, "structure", ("example-prompts-placement",),
        "quality-controllers/format-checker.*", "EXAMPLE_PROMPTS_PLACEMENT", "Updated structure validation rules",
    ),
    UpdateTarget(
        ChangeType.OUTPUT_STRUCTURE, "structure", ("timestamp-format",),
        "file-generators/output-file-manager.*", "TIMESTAMP_FORMAT", "Updated output timestamp format",
    ),
]


def _string_pattern(name: str) -> re.Pattern:
    return re.compile(rf"(\b{re.escape(name)}\s*=\s*)([\"'])(.*?)\2")


def _number_pattern(name: str) -> re.Pattern:
    return re.compile(rf"(\b{re.escape(name)}\s*=\s*)(-?\d+)\b")


def read_constant(path: Path, name: str) -> Optional[str]:
    """Current literal assigned to `name` in the file (as text), or None."""
    text = path.read_text(encoding="utf-8")
    m = _string_pattern(name).search(text)
    if m:
        return m.group(3)
    m = _number_pattern(name).search(text)
    if m:
        return m.group(2)
    return None


def rewrite_constant(path: Path, name: str, value: Any) -> bool:
    """
    Replace the first `name = <literal>` assignment in the file.
    Returns True when the file content changed.
    """
    text = path.read_text(encoding="utf-8")
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise UpdateError(f"Unsupported value for {name}: {value!r}")

    if isinstance(value, int):
        new_text, n = _number_pattern(name).subn(lambda m: f"{m.group(1)}{value}", text, count=1)
    else:
        new_text, n = _string_pattern(name).subn(
            lambda m: f"{m.group(1)}{m.group(2)}{value}{m.group(2)}", text, count=1
        )
    if n == 0:
        raise UpdateError(f"Constant {name} not found in {path}")
    if new_text == text:
        return False
    path.write_text(new_text, encoding="utf-8")
    return True


def manual_review_reason(change: Change) -> Optional[str]:
    """Why a high-severity change must not be applied automatically (None if it can be)."""
    if change.severity != Severity.HIGH:
        return None
    if change.type == ChangeType.CONTENT_RULES and any(d.key == "example-prompts" for d in change.details):
        return "Example prompt rules changed"
    if change.type == ChangeType.OUTPUT_STRUCTURE and any(d.type == DifferenceType.REMOVED for d in change.details):
        return "Output structure entries were removed"
    if len(change.details) > 5:
        return "Too many field-level changes for automatic update"
    return None


class AutoUpdater:
    def __init__(self, targets_dir: str | Path, targets: Sequence[UpdateTarget] = UPDATE_TARGETS):
        self.targets_dir = Path(targets_dir)
        self.targets = list(targets)

    def resolve_modules(self, module_glob: str) -> List[Path]:
        return sorted(p for p in self.targets_dir.glob(module_glob) if p.is_file())

    def _apply_target(self, target: UpdateTarget, value: Any) -> List[str]:
        modules = self.resolve_modules(target.module_glob)
        if not modules:
            raise UpdateError(f"No module matches {target.module_glob} under {self.targets_dir}")
        updates = []
        for module in modules:
            if rewrite_constant(module, target.constant, value):
                updates.append(f"{target.description} ({module.relative_to(self.targets_dir)})")
        return updates

    def apply_change(self, change: Change) -> UpdateResult:
        """
        Run every target of the change's type. A failing target is recorded
        in `errors` and does not stop the others.
        """
        updates: List[str] = []
        errors: List[str] = []
        for target in self.targets:
            if target.change_type != change.type:
                continue
            for detail in change.details:
                if detail.key != target.detail_key:
                    continue
                new = target.value_in(detail.new_value)
                old = target.value_in(detail.old_value)
                if new is None or canonical_json(new) == canonical_json(old):
                    continue
                value = target.transform(new) if target.transform else new
                try:
                    updates.extend(self._apply_target(target, value))
                except (UpdateError, OSError) as e:
                    logger.warning(f"Failed to update {target.constant}: {e}")
                    errors.append(f"{target.constant}: {e}")
        return UpdateResult(type=change.impact, updates=updates, errors=errors, success=not errors)

    def apply_updates(self, changes: List[Change]) -> UpdateSummary:
        results: List[UpdateResult] = []
        manual: List[ManualReviewItem] = []

        for change in changes:
            reason = manual_review_reason(change)
            if reason:
                manual.append(
                    ManualReviewItem(
                        type=change.type, description=change.description, severity=change.severity, reason=reason
                    )
                )
                continue

            result = self.apply_change(change)
            if result.updates or not result.errors:
                results.append(result)
            for error in result.errors:
                manual.append(
                    ManualReviewItem(
                        type=change.type,
                        description=change.description,
                        severity=change.severity,
                        reason="Automatic update failed",
                        error=error,
                    )
                )

        next_steps: List[str] = []
        if manual:
            next_steps.append("Review the manual review items and update the listed modules by hand")
        next_steps.append("Run: promptdiff validate")

        return UpdateSummary(
            timestamp=utc_now_iso(),
            automatic_updates=len(results),
            manual_review_required=len(manual),
            results=results,
            manual_review_items=manual,
            success=not any(m.error for m in manual),
            next_steps=next_steps,
        )


def save_update_summary(summary: UpdateSummary, reports_dir: str | Path) -> Path:
    path = Path(reports_dir) / f"{SUMMARY_PREFIX}{file_timestamp()}.json"
    return write_json_document(path, summary.to_json_dict())
