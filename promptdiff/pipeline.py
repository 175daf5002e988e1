"""
High-level pipeline, one function per command:
- analyze: hash the prompt, diff against the workflow configuration, save a change report
- apply: merge the parsed prompt into the workflow configuration, then update downstream modules
- update-config: only the merge
- validate: cross-check configuration and downstream modules
- convert: prompt markdown -> JSON
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from .config import PromptDiffConfig
from .converter import convert_prompt_file
from .detector import ChangeDetector
from .history import JsonHistoryStore
from .models import DetectionResult, UpdateSummary, ValidationReport
from .parser import PromptParser
from .report import (
    build_change_report,
    find_latest_report,
    load_change_report,
    render_detection,
    save_change_report,
)
from .updater import AutoUpdater, save_update_summary
from .validator import IntegrationValidator, save_validation_report
from .workflow_config import ConfigUpdate, WorkflowConfigStore


def build_detector(cfg: PromptDiffConfig) -> ChangeDetector:
    return ChangeDetector(
        cfg.project.prompt_file,
        JsonHistoryStore(cfg.project.history_file, max_records=cfg.history.max_records),
        WorkflowConfigStore(cfg.project.workflow_config),
        policy=cfg.policy,
    )


def run_analyze(cfg: PromptDiffConfig) -> DetectionResult:
    """Detect prompt changes; a change report is saved whenever changes are found."""
    if cfg.runtime.verbose:
        print(f"[ANALYZE] {cfg.project.prompt_file}")

    result = build_detector(cfg).detect_prompt_changes()
    for line in render_detection(result):
        print(line)

    if not result.has_changes:
        return result

    os.makedirs(cfg.project.reports_dir, exist_ok=True)
    report = build_change_report(result)
    report_path = save_change_report(report, cfg.project.reports_dir)

    print("")
    print("Recommendations:")
    for rec in report.recommendations:
        print(f"    - {rec}")
    print("")
    print("Next steps:")
    print(f"    1. Review the change report: {report_path}")
    print("    2. Run: promptdiff apply")
    print("    3. Run: promptdiff validate")

    if cfg.runtime.verbose:
        print(f"[DONE] Change report: {report_path}")
    return result


def run_update_config(cfg: PromptDiffConfig) -> ConfigUpdate:
    parsed = PromptParser(cfg.project.prompt_file).parse_prompt()
    update = WorkflowConfigStore(cfg.project.workflow_config).update(parsed)

    if update.changed_sections:
        print(f"Updated sections: {', '.join(update.changed_sections)}")
    else:
        print("Workflow configuration already matches the prompt")

    if cfg.runtime.verbose:
        print(f"[DONE] Workflow configuration: {cfg.project.workflow_config}")
    return update


def run_apply(cfg: PromptDiffConfig, report_path: Optional[str | Path] = None) -> UpdateSummary:
    if report_path is None:
        report_path = find_latest_report(cfg.project.reports_dir)
        if report_path is None:
            raise FileNotFoundError(
                f"No change report found in {cfg.project.reports_dir}; run 'promptdiff analyze' first"
            )
    report = load_change_report(report_path)

    if cfg.runtime.verbose:
        print(f"[APPLY] {report_path}: {len(report.changes)} change(s)")

    run_update_config(cfg)

    updater = AutoUpdater(cfg.project.targets_dir)
    summary = updater.apply_updates([c.to_change() for c in report.changes])
    os.makedirs(cfg.project.reports_dir, exist_ok=True)
    summary_path = save_update_summary(summary, cfg.project.reports_dir)

    print(f"Automatic updates: {summary.automatic_updates}")
    for result in summary.results:
        for update in result.updates:
            print(f"    - [{result.type.value}] {update}")
    print(f"Manual review required: {summary.manual_review_required}")
    for item in summary.manual_review_items:
        suffix = f" ({item.error})" if item.error else ""
        print(f"    - {item.description}: {item.reason}{suffix}")
    print("")
    print("Next steps:")
    for step in summary.next_steps:
        print(f"    - {step}")

    if cfg.runtime.verbose:
        print(f"[DONE] Update summary: {summary_path}")
    return summary


def run_validate(cfg: PromptDiffConfig) -> ValidationReport:
    if cfg.runtime.verbose:
        print(f"[VALIDATE] {cfg.project.targets_dir}")

    parsed = PromptParser(cfg.project.prompt_file).parse_prompt()
    persisted = WorkflowConfigStore(cfg.project.workflow_config).load_configuration()

    validator = IntegrationValidator(
        cfg.project.targets_dir,
        required_modules=cfg.validation.required_modules,
        entry_points=cfg.validation.entry_points,
    )
    report = validator.validate(parsed, persisted)
    os.makedirs(cfg.project.reports_dir, exist_ok=True)
    report_path = save_validation_report(report, cfg.project.reports_dir)

    s = report.summary
    print(f"Overall status: {report.overall_status}")
    print(f"Checks: {s.total} total, {s.passed} passed, {s.warnings} warnings, {s.failed} failed")
    for category, checks in report.results.items():
        print(f"{category}:")
        for check in checks:
            print(f"    [{check.status.value}] {check.test}: {check.message}")
    print("")
    print("Recommendations:")
    for rec in report.recommendations:
        print(f"    {rec}")

    if cfg.runtime.verbose:
        print(f"[DONE] Validation report: {report_path}")
    return report


def run_convert(cfg: PromptDiffConfig, output_path: Optional[str | Path] = None) -> Path:
    path = convert_prompt_file(cfg.project.prompt_file, output_path or cfg.project.converted_json)
    if cfg.runtime.verbose:
        print(f"[DONE] Converted prompt: {path}")
    return path
