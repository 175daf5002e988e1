"""
Structural diff between two ParsedConfiguration snapshots + impact classification.

Pure functions: nothing here reads or writes files.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import EffortPolicy
from .models import (
    PERSISTED_SECTIONS,
    Change,
    ChangeType,
    Difference,
    DifferenceType,
    ImpactAnalysis,
    ImpactCategory,
    ParsedConfiguration,
    Severity,
)
from .utils import canonical_json


@dataclass(frozen=True)
class SectionPolicy:
    attr: str
    description: str
    impact: ImpactCategory
    severity: Severity


# Order is the order of emitted Change items.
SECTION_POLICIES: Dict[ChangeType, SectionPolicy] = {
    ChangeType.SOURCES: SectionPolicy(
        "sources",
        "Source URLs or data extraction requirements changed",
        ImpactCategory.DATA_EXTRACTORS,
        Severity.MEDIUM,
    ),
    ChangeType.CONTENT_RULES: SectionPolicy(
        "content_rules",
        "Content generation rules changed",
        ImpactCategory.CONTENT_BUILDERS,
        Severity.HIGH,
    ),
    ChangeType.VALIDATION_RULES: SectionPolicy(
        "validation_rules",
        "Quality validation rules changed",
        ImpactCategory.QUALITY_CONTROLLERS,
        Severity.MEDIUM,
    ),
    ChangeType.OUTPUT_STRUCTURE: SectionPolicy(
        "output",
        "Output file structure or naming changed",
        ImpactCategory.FILE_GENERATORS,
        Severity.HIGH,
    ),
}


@dataclass(frozen=True)
class ImpactRule:
    module_glob: str
    action: str
    manual_review: Optional[str] = None  # added for high-severity changes


IMPACT_RULES: Dict[ImpactCategory, ImpactRule] = {
    ImpactCategory.DATA_EXTRACTORS: ImpactRule(
        "data-extractors/*",
        "Update source URLs and data extraction logic",
    ),
    ImpactCategory.CONTENT_BUILDERS: ImpactRule(
        "content-builders/*",
        "Update content generation rules and templates",
        "Content builder logic changes require manual review",
    ),
    ImpactCategory.QUALITY_CONTROLLERS: ImpactRule(
        "quality-controllers/*",
        "Update validation rules and quality checks",
    ),
    ImpactCategory.FILE_GENERATORS: ImpactRule(
        "file-generators/*",
        "Update output file structure and naming",
        "File structure changes require manual review",
    ),
}


def compare_objects(old: Optional[Mapping[str, Any]], new: Optional[Mapping[str, Any]]) -> List[Difference]:
    """
    Field-level differences over the union of both key sets
    (old keys first, then keys only present in new).
    """
    old = old or {}
    new = new or {}
    differences: List[Difference] = []

    keys = list(old.keys()) + [k for k in new.keys() if k not in old]
    for key in keys:
        if key not in old:
            differences.append(Difference(type=DifferenceType.ADDED, key=key, new_value=new[key]))
        elif key not in new:
            differences.append(Difference(type=DifferenceType.REMOVED, key=key, old_value=old[key]))
        elif canonical_json(old[key]) != canonical_json(new[key]):
            differences.append(
                Difference(type=DifferenceType.MODIFIED, key=key, old_value=old[key], new_value=new[key])
            )
    return differences


def diff_configurations(current: ParsedConfiguration, previous: Optional[ParsedConfiguration]) -> List[Change]:
    """One Change per sub-section whose serialized form differs."""
    previous = previous or ParsedConfiguration()
    changes: List[Change] = []

    for change_type, policy in SECTION_POLICIES.items():
        new = current.section_dump(policy.attr)
        old = previous.section_dump(policy.attr)
        if canonical_json(old) == canonical_json(new):
            continue
        changes.append(
            Change(
                type=change_type,
                description=policy.description,
                impact=policy.impact,
                severity=policy.severity,
                details=compare_objects(old, new),
            )
        )
    return changes


def section_differences(
    current: ParsedConfiguration, previous: Optional[ParsedConfiguration]
) -> Dict[str, List[Difference]]:
    """
    Differences for all six persisted sections, keyed by persisted name.
    Covers templates and tool-categorization, which are not Change types.
    """
    previous = previous or ParsedConfiguration()
    result: Dict[str, List[Difference]] = {}
    for key, attr in PERSISTED_SECTIONS.items():
        old = previous.section_dump(attr)
        new = current.section_dump(attr)
        if canonical_json(old) != canonical_json(new):
            result[key] = compare_objects(old, new)
    return result


def estimate_effort(changes: Iterable[Change], policy: Optional[EffortPolicy] = None) -> Severity:
    policy = policy or EffortPolicy()
    total = sum(policy.severity_weights[c.severity] for c in changes)
    if total <= policy.low_max:
        return Severity.LOW
    if total <= policy.medium_max:
        return Severity.MEDIUM
    return Severity.HIGH


def analyze_impact(changes: List[Change], policy: Optional[EffortPolicy] = None) -> ImpactAnalysis:
    impacted: List[str] = []
    actions: List[str] = []
    manual: List[str] = []

    for change in changes:
        rule = IMPACT_RULES[change.impact]
        if rule.module_glob not in impacted:
            impacted.append(rule.module_glob)
        actions.append(rule.action)
        if rule.manual_review and change.severity == Severity.HIGH:
            manual.append(rule.manual_review)

    return ImpactAnalysis(
        impacted_modules=impacted,
        update_actions=actions,
        manual_review_required=manual,
        estimated_effort=estimate_effort(changes, policy),
    )
