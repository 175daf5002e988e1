"""
Change report: JSON document summarizing one detection run + console rendering.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .errors import StateCorruptedError
from .models import (
    ChangeReport,
    DetectionResult,
    ImpactAnalysis,
    ReportChange,
    ReportImpact,
    ReportSummary,
    Severity,
)
from .utils import file_timestamp, read_json_document, utc_now_iso, write_json_document

REPORT_PREFIX = "change-report-"


def generate_recommendations(impact: ImpactAnalysis) -> List[str]:
    recommendations: List[str] = []

    if impact.auto_updateable:
        recommendations.append("All changes can be automatically applied")
        recommendations.append("Run: promptdiff apply")
    else:
        recommendations.append("Manual review required for some changes")
        recommendations.append("Review the manual review items, then run: promptdiff apply")

    if impact.estimated_effort == Severity.HIGH:
        recommendations.append("Consider implementing changes incrementally")
        recommendations.append("Test each module update separately")

    recommendations.append("Run: promptdiff validate after updates")
    return recommendations


def build_change_report(result: DetectionResult, *, timestamp: Optional[str] = None) -> ChangeReport:
    impact = result.impact_analysis or ImpactAnalysis()
    return ChangeReport(
        summary=ReportSummary(
            timestamp=timestamp or utc_now_iso(),
            total_changes=len(result.changes),
            estimated_effort=impact.estimated_effort,
            auto_updateable=impact.auto_updateable,
        ),
        changes=[
            ReportChange(
                type=c.type,
                description=c.description,
                severity=c.severity,
                impact=c.impact,
                detail_count=len(c.details),
                details=c.details,
            )
            for c in result.changes
        ],
        impact=ReportImpact(
            modules_affected=len(impact.impacted_modules),
            update_actions=len(impact.update_actions),
            manual_review_items=len(impact.manual_review_required),
        ),
        recommendations=generate_recommendations(impact),
    )


def save_change_report(report: ChangeReport, reports_dir: str | Path) -> Path:
    path = Path(reports_dir) / f"{REPORT_PREFIX}{file_timestamp()}.json"
    return write_json_document(path, report.to_json_dict())


def load_change_report(path: str | Path) -> ChangeReport:
    data = read_json_document(path)
    if data is None:
        raise FileNotFoundError(f"Change report not found: {path}")
    try:
        return ChangeReport.model_validate(data)
    except ValidationError as e:
        raise StateCorruptedError(f"Change report {path} is not valid: {e}") from e


def find_latest_report(reports_dir: str | Path) -> Optional[Path]:
    """Newest change-report-*.json (names sort by timestamp)."""
    candidates = sorted(Path(reports_dir).glob(f"{REPORT_PREFIX}*.json"))
    return candidates[-1] if candidates else None


def render_detection(result: DetectionResult) -> List[str]:
    """Human-readable lines for the analyze command."""
    if not result.has_changes:
        return [result.message or "No changes detected", "Configuration is up to date"]

    lines: List[str] = []
    if result.message:
        lines.append(result.message)
    lines.append(f"Detected {len(result.changes)} changes:")
    lines.append("")
    for change in result.changes:
        lines.append(f"* {change.type.value}")
        lines.append(f"    {change.description}")
        lines.append(f"    Impact: {change.impact.value} ({change.severity.value} severity)")
        lines.append(f"    Details: {len(change.details)} specific changes")
        for d in change.details:
            lines.append(f"      - {d.type.value}: {d.key}")
        lines.append("")

    impact = result.impact_analysis
    if impact is not None:
        lines.append("Impact analysis:")
        lines.append(f"    Modules affected: {len(impact.impacted_modules)}")
        for module in impact.impacted_modules:
            lines.append(f"      - {module}")
        lines.append(f"    Estimated effort: {impact.estimated_effort.value}")
        lines.append(f"    Auto-updatable: {'Yes' if impact.auto_updateable else 'No'}")
        lines.append("")
        lines.append("Update actions:")
        lines.extend(f"    - {a}" for a in impact.update_actions)
        if impact.manual_review_required:
            lines.append("")
            lines.append("Manual review required:")
            lines.extend(f"    - {item}" for item in impact.manual_review_required)
    return lines
