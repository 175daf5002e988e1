"""
YAML-driven configuration for promptdiff.

Design choice:
- Paths and policy live in YAML; relative paths are taken relative to the working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import yaml
from pydantic import BaseModel, Field, NonNegativeInt, model_validator

from .models import Severity


class ProjectConfig(BaseModel):
    prompt_file: str = "create-docs.prompt.md"
    workflow_config: str = "generated/workflow/workflow-config.json"
    history_file: str = "generated/logs/change-history.json"
    reports_dir: str = "generated/reports"
    targets_dir: str = "src"
    converted_json: str = "generated/prompt/prompt.json"


class EffortPolicy(BaseModel):
    """
    Severity weights and effort thresholds.
    total <= low_max -> low, total <= medium_max -> medium, else high.
    """
    severity_weights: Dict[Severity, NonNegativeInt] = Field(
        default_factory=lambda: {Severity.LOW: 1, Severity.MEDIUM: 3, Severity.HIGH: 5}
    )
    low_max: int = 3
    medium_max: int = 10

    @model_validator(mode="after")
    def _check(self) -> "EffortPolicy":
        missing = [s.value for s in Severity if s not in self.severity_weights]
        if missing:
            raise ValueError(f"policy.severity_weights is missing: {', '.join(missing)}")
        if self.low_max > self.medium_max:
            raise ValueError("policy.low_max must not exceed policy.medium_max")
        return self


class HistoryConfig(BaseModel):
    max_records: int = Field(10, ge=1)


class ValidationConfig(BaseModel):
    required_modules: List[str] = Field(
        default_factory=lambda: [
            "data-extractors/azmcp-commands-extractor.*",
            "data-extractors/tools-json-processor.*",
            "data-extractors/azure-docs-fetcher.*",
            "data-extractors/parameter-extractor.*",
            "content-builders/metadata-builder.*",
            "content-builders/example-prompt-builder.*",
            "content-builders/operation-builder.*",
            "content-builders/parameter-table-builder.*",
            "content-builders/usage-examples-builder.*",
            "template-processors/template-loader.*",
            "template-processors/section-template-processor.*",
            "template-processors/document-template-processor.*",
            "quality-controllers/content-validator.*",
            "quality-controllers/format-checker.*",
            "quality-controllers/link-validator.*",
            "quality-controllers/consistency-checker.*",
            "quality-controllers/reference-validator.*",
            "file-generators/single-doc-generator.*",
            "file-generators/batch-doc-generator.*",
            "file-generators/output-file-manager.*",
            "navigation-generators/update-index.*",
            "navigation-generators/update-supported-services.*",
            "navigation-generators/update-toc.*",
        ]
    )
    entry_points: Dict[str, str] = Field(
        default_factory=lambda: {
            "Main Entry Point": "main.*",
            "Configuration Loading": "config/configuration-manager.*",
            "Workflow Orchestrator": "workflows/documentation-orchestrator.*",
        }
    )


class RuntimeConfig(BaseModel):
    verbose: bool = True


class PromptDiffConfig(BaseModel):
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    policy: EffortPolicy = Field(default_factory=EffortPolicy)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PromptDiffConfig":
        path = Path(path)
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(data)
