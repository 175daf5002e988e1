"""
Integration validation: does the code base still match the prompt?

Four categories of checks, each PASS / WARN / FAIL:
- configurationAlignment: parsed prompt vs persisted workflow configuration
- moduleCompleteness: required downstream modules exist
- workflowIntegrity: pipeline entry points exist
- codeCompliance: module constants hold the configured values
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from .differ import SECTION_POLICIES, section_differences
from .models import CheckStatus, ParsedConfiguration, ValidationCheck, ValidationReport, ValidationSummary
from .updater import UPDATE_TARGETS, UpdateTarget, read_constant
from .utils import file_timestamp, utc_now_iso, write_json_document

logger = logging.getLogger(__name__)

REPORT_PREFIX = "validation-report-"
CATEGORIES = ["configurationAlignment", "moduleCompleteness", "workflowIntegrity", "codeCompliance"]


class IntegrationValidator:
    def __init__(
        self,
        targets_dir: str | Path,
        *,
        required_modules: Sequence[str],
        entry_points: Mapping[str, str],
        targets: Sequence[UpdateTarget] = UPDATE_TARGETS,
    ):
        self.targets_dir = Path(targets_dir)
        self.required_modules = list(required_modules)
        self.entry_points = dict(entry_points)
        self.targets = list(targets)

    def _exists(self, module_glob: str) -> List[Path]:
        return sorted(p for p in self.targets_dir.glob(module_glob) if p.is_file())

    def check_configuration_alignment(
        self, parsed: ParsedConfiguration, persisted: ParsedConfiguration
    ) -> List[ValidationCheck]:
        diffs = section_differences(parsed, persisted)
        if not diffs:
            return [ValidationCheck(test="Prompt-Config Sync", status=CheckStatus.PASS,
                                    message="Configuration matches prompt requirements")]
        return [
            ValidationCheck(
                test="Prompt-Config Sync",
                status=CheckStatus.FAIL,
                message="Configuration mismatches detected",
                details={section: [d.key for d in items] for section, items in diffs.items()},
            )
        ]

    def check_module_completeness(self) -> List[ValidationCheck]:
        checks = []
        for module_glob in self.required_modules:
            found = self._exists(module_glob)
            if found:
                checks.append(ValidationCheck(test=f"Module: {module_glob}", status=CheckStatus.PASS,
                                              message="Module present"))
            else:
                checks.append(ValidationCheck(test=f"Module: {module_glob}", status=CheckStatus.FAIL,
                                              message="Module not found"))
        return checks

    def check_workflow_integrity(self) -> List[ValidationCheck]:
        checks = []
        for name, module_glob in self.entry_points.items():
            if self._exists(module_glob):
                checks.append(ValidationCheck(test=name, status=CheckStatus.PASS, message=f"{module_glob} exists"))
            else:
                checks.append(ValidationCheck(test=name, status=CheckStatus.WARN, message=f"{module_glob} not found"))
        return checks

    def check_code_compliance(self, persisted: ParsedConfiguration) -> List[ValidationCheck]:
        checks = []
        for target in self.targets:
            section = persisted.section_dump(SECTION_POLICIES[target.change_type].attr)
            expected = target.value_in(section.get(target.detail_key))
            if expected is None:
                continue
            if target.transform:
                expected = target.transform(expected)

            test = f"{target.constant} ({target.module_glob})"
            modules = self._exists(target.module_glob)
            if not modules:
                checks.append(ValidationCheck(test=test, status=CheckStatus.WARN, message="Module not found"))
                continue

            mismatched = {}
            for module in modules:
                actual = read_constant(module, target.constant)
                if actual != str(expected):
                    mismatched[str(module.relative_to(self.targets_dir))] = actual
            if not mismatched:
                checks.append(ValidationCheck(test=test, status=CheckStatus.PASS,
                                              message="Value matches configuration"))
            else:
                # Source URL mismatches fail, other constants warn.
                status = CheckStatus.FAIL if target.change_type.value == "sources" else CheckStatus.WARN
                checks.append(
                    ValidationCheck(
                        test=test,
                        status=status,
                        message=f"Value does not match configuration (expected {expected!r})",
                        details=mismatched,
                    )
                )
        return checks

    def validate(self, parsed: ParsedConfiguration, persisted: ParsedConfiguration) -> ValidationReport:
        results: Dict[str, List[ValidationCheck]] = {
            "configurationAlignment": self.check_configuration_alignment(parsed, persisted),
            "moduleCompleteness": self.check_module_completeness(),
            "workflowIntegrity": self.check_workflow_integrity(),
            "codeCompliance": self.check_code_compliance(persisted),
        }
        all_checks = [c for category in CATEGORIES for c in results[category]]
        summary = ValidationSummary(
            total=len(all_checks),
            passed=sum(1 for c in all_checks if c.status == CheckStatus.PASS),
            warnings=sum(1 for c in all_checks if c.status == CheckStatus.WARN),
            failed=sum(1 for c in all_checks if c.status == CheckStatus.FAIL),
        )
        if summary.failed:
            overall = "FAIL"
        elif summary.warnings:
            overall = "PASS_WITH_WARNINGS"
        else:
            overall = "PASS"
        logger.info(f"Validation finished: {summary.passed} passed, {summary.warnings} warnings, {summary.failed} failed")

        return ValidationReport(
            timestamp=utc_now_iso(),
            summary=summary,
            overall_status=overall,
            results=results,
            recommendations=generate_recommendations(summary, all_checks),
        )


def generate_recommendations(summary: ValidationSummary, checks: List[ValidationCheck]) -> List[str]:
    recommendations: List[str] = []
    if summary.failed:
        recommendations.append("Fix failing checks before proceeding")
        recommendations.extend(f"  - {c.test}: {c.message}" for c in checks if c.status == CheckStatus.FAIL)
    if summary.warnings:
        recommendations.append("Review warnings for potential improvements")
        recommendations.extend(f"  - {c.test}: {c.message}" for c in checks if c.status == CheckStatus.WARN)
    if not summary.failed and not summary.warnings:
        recommendations.append("All checks passed - the code base matches the prompt")
    recommendations.append("Run validation after any prompt changes")
    return recommendations


def save_validation_report(report: ValidationReport, reports_dir: str | Path) -> Path:
    path = Path(reports_dir) / f"{REPORT_PREFIX}{file_timestamp()}.json"
    return write_json_document(path, report.to_json_dict())
