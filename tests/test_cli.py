"""End-to-end tests for the command-line interface."""

import json
from pathlib import Path

import pytest
import yaml

from promptdiff.cli import main


@pytest.fixture
def config_file(tmp_path, app_config):
    path = tmp_path / "promptdiff.yaml"
    path.write_text(yaml.safe_dump(app_config.model_dump(mode="json")), encoding="utf-8")
    return path


def reports(app_config, prefix):
    return sorted(Path(app_config.project.reports_dir).glob(f"{prefix}*.json"))


class TestCli:
    def test_analyze_twice(self, config_file, app_config, capsys):
        main(["analyze", "--config", str(config_file)])
        out = capsys.readouterr().out
        assert "First-time execution" in out
        assert len(reports(app_config, "change-report-")) == 1

        main(["analyze", "--config", str(config_file)])
        out = capsys.readouterr().out
        assert "No changes detected in prompt file" in out
        assert len(reports(app_config, "change-report-")) == 1

    def test_analyze_then_apply_then_validate(self, config_file, app_config, prompt_file, sample_prompt, capsys):
        main(["analyze", "--config", str(config_file)])
        main(["apply", "--config", str(config_file)])
        workflow = json.loads(Path(app_config.project.workflow_config).read_text(encoding="utf-8"))
        assert workflow["content-rules"]["example-prompts"] == {"count": 5}
        assert len(reports(app_config, "update-summary-")) == 1

        prompt_file.write_text(
            sample_prompt.replace("sentence case formatting", "title case") + "\nAll markdown bullets use `-` (dash).\n",
            encoding="utf-8",
        )
        main(["analyze", "--config", str(config_file)])
        out = capsys.readouterr().out
        assert "Detected 1 changes:" in out

        main(["apply", "--config", str(config_file)])
        builder = Path(app_config.project.targets_dir) / "content-builders" / "operation-builder.py"
        assert 'BULLET_STYLE = "dash"' in builder.read_text(encoding="utf-8")

        main(["validate", "--config", str(config_file)])
        out = capsys.readouterr().out
        assert "Overall status: PASS_WITH_WARNINGS" in out
        assert len(reports(app_config, "validation-report-")) == 1

    def test_apply_without_report_fails(self, config_file, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["apply", "--config", str(config_file)])
        assert exc.value.code == 1
        assert "No change report found" in capsys.readouterr().err

    def test_missing_prompt_fails(self, config_file, prompt_file, capsys):
        prompt_file.unlink()
        with pytest.raises(SystemExit) as exc:
            main(["analyze", "--config", str(config_file)])
        assert exc.value.code == 1
        assert "Failed to read prompt file" in capsys.readouterr().err

    def test_convert(self, config_file, app_config):
        main(["convert", "--config", str(config_file)])
        data = json.loads(Path(app_config.project.converted_json).read_text(encoding="utf-8"))
        assert data["metadata"]["title"] == "Azure MCP documentation generator"

    def test_config_is_required(self):
        with pytest.raises(SystemExit):
            main(["analyze"])
