"""Tests for integration validation."""

import pytest

from promptdiff.models import CheckStatus, ParsedConfiguration
from promptdiff.parser import parse_prompt_text
from promptdiff.updater import UPDATE_TARGETS
from promptdiff.validator import IntegrationValidator, save_validation_report


def targets(*constants):
    return [t for t in UPDATE_TARGETS if t.constant in constants]


@pytest.fixture
def parsed(sample_prompt):
    return parse_prompt_text(sample_prompt)


class TestChecks:
    def test_configuration_alignment(self, targets_dir, parsed):
        validator = IntegrationValidator(targets_dir, required_modules=[], entry_points={})
        assert validator.check_configuration_alignment(parsed, parsed)[0].status == CheckStatus.PASS

        failed = validator.check_configuration_alignment(parsed, ParsedConfiguration())[0]
        assert failed.status == CheckStatus.FAIL
        assert "tool-categorization" in failed.details

    def test_module_completeness(self, targets_dir):
        validator = IntegrationValidator(
            targets_dir,
            required_modules=["content-builders/operation-builder.*", "navigation-generators/update-toc.*"],
            entry_points={},
        )
        statuses = [c.status for c in validator.check_module_completeness()]
        assert statuses == [CheckStatus.PASS, CheckStatus.FAIL]

    def test_workflow_integrity_warns(self, targets_dir):
        (targets_dir / "main.py").write_text("", encoding="utf-8")
        validator = IntegrationValidator(
            targets_dir, required_modules=[], entry_points={"Main Entry Point": "main.*", "Orchestrator": "workflows/x.*"}
        )
        statuses = [c.status for c in validator.check_workflow_integrity()]
        assert statuses == [CheckStatus.PASS, CheckStatus.WARN]

    def test_code_compliance(self, targets_dir, parsed):
        validator = IntegrationValidator(
            targets_dir,
            required_modules=[],
            entry_points={},
            targets=targets("AZMCP_COMMANDS_URL", "HEADER_CASE", "E2E_PROMPTS_URL", "EXAMPLE_FORMAT"),
        )
        checks = {c.test.split(" ")[0]: c for c in validator.check_code_compliance(parsed)}

        # matches the sample prompt
        assert checks["AZMCP_COMMANDS_URL"].status == CheckStatus.PASS
        # "title" in the module, "sentence" in the configuration
        assert checks["HEADER_CASE"].status == CheckStatus.WARN
        assert checks["HEADER_CASE"].details == {"content-builders/operation-builder.py": "title"}
        # configured, but parameter-extractor does not exist
        assert checks["E2E_PROMPTS_URL"].status == CheckStatus.WARN
        # not configured at all
        assert "EXAMPLE_FORMAT" not in checks

    def test_stale_source_url_fails(self, targets_dir, parsed):
        module = targets_dir / "data-extractors" / "azmcp-commands-extractor.py"
        module.write_text('AZMCP_COMMANDS_URL = "https://stale"\n', encoding="utf-8")
        validator = IntegrationValidator(
            targets_dir, required_modules=[], entry_points={}, targets=targets("AZMCP_COMMANDS_URL")
        )
        assert validator.check_code_compliance(parsed)[0].status == CheckStatus.FAIL


class TestValidate:
    def test_overall_pass_with_warnings(self, targets_dir, parsed, tmp_path):
        validator = IntegrationValidator(
            targets_dir,
            required_modules=["data-extractors/*"],
            entry_points={},
            targets=targets("HEADER_CASE"),
        )
        report = validator.validate(parsed, parsed)

        assert report.overall_status == "PASS_WITH_WARNINGS"
        assert report.summary.total == 3
        assert report.summary.passed == 2
        assert report.summary.warnings == 1
        assert list(report.results) == [
            "configurationAlignment",
            "moduleCompleteness",
            "workflowIntegrity",
            "codeCompliance",
        ]
        assert report.recommendations[0] == "Review warnings for potential improvements"

        path = save_validation_report(report, tmp_path / "reports")
        assert path.name.startswith("validation-report-")

    def test_overall_fail(self, targets_dir, parsed):
        validator = IntegrationValidator(targets_dir, required_modules=["missing/*"], entry_points={}, targets=[])
        report = validator.validate(parsed, parsed)
        assert report.overall_status == "FAIL"
        assert report.to_json_dict()["overallStatus"] == "FAIL"

    def test_overall_pass(self, targets_dir, parsed):
        validator = IntegrationValidator(targets_dir, required_modules=[], entry_points={}, targets=[])
        report = validator.validate(parsed, parsed)
        assert report.overall_status == "PASS"
