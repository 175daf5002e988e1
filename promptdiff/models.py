"""
Data models: the parsed prompt configuration, detected changes, history and reports.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field
from pydantic.alias_generators import to_camel

from .errors import PromptReadError, StateCorruptedError
from .utils import sha256_bytes_hex, sha256_hex


class ChangeType(str, Enum):
    SOURCES = "sources"
    CONTENT_RULES = "content-rules"
    VALIDATION_RULES = "validation-rules"
    OUTPUT_STRUCTURE = "output-structure"


class ImpactCategory(str, Enum):
    DATA_EXTRACTORS = "data-extractors"
    CONTENT_BUILDERS = "content-builders"
    QUALITY_CONTROLLERS = "quality-controllers"
    FILE_GENERATORS = "file-generators"


class Severity(str, Enum):
    """Used both for a Change's severity and for the overall effort tier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DifferenceType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class CheckStatus(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class CamelModel(BaseModel):
    """JSON documents written by promptdiff use camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ── Prompt document ──────────────────────────────────────────────


class PromptDocument(BaseModel):
    """Raw prompt text plus its digest. Read fresh on every run."""
    model_config = ConfigDict(frozen=True)

    content: str
    content_hash: str
    path: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, path: Optional[str] = None) -> "PromptDocument":
        return cls(content=text, content_hash=sha256_hex(text), path=path)

    @classmethod
    def from_path(cls, path: str | Path) -> "PromptDocument":
        """Digest of the raw bytes; line endings are not translated."""
        path = Path(path)
        try:
            data = path.read_bytes()
            text = data.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PromptReadError(f"Failed to read prompt file {path}: {e}") from e
        return cls(content=text, content_hash=sha256_bytes_hex(data), path=str(path))


# ── Parsed configuration ─────────────────────────────────────────


class SourceReference(BaseModel):
    label: str
    url: str
    kind: Literal["repository", "documentation", "web"]


class DocumentationSources(BaseModel):
    references: Dict[str, SourceReference] = Field(default_factory=dict)
    examples: Dict[str, SourceReference] = Field(default_factory=dict)
    navigation: Dict[str, SourceReference] = Field(default_factory=dict)


class Sources(BaseModel):
    engineering: Dict[str, SourceReference] = Field(default_factory=dict)
    documentation: DocumentationSources = Field(default_factory=DocumentationSources)


class Templates(BaseModel):
    primary: Optional[str] = None
    partial: Optional[str] = None


class OutputStructure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    directories: List[str] = Field(default_factory=list)
    timestamp_format: Optional[str] = Field(None, alias="timestamp-format")


class OutputFiles(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: List[str] = Field(default_factory=list)
    source_of_truth: List[str] = Field(default_factory=list, alias="source-of-truth")
    logs: List[str] = Field(default_factory=list)


class OutputLayout(BaseModel):
    structure: OutputStructure = Field(default_factory=OutputStructure)
    files: OutputFiles = Field(default_factory=OutputFiles)


class ContentRules(BaseModel):
    """Formatting rules. A group stays empty when none of its trigger phrases occur."""
    model_config = ConfigDict(populate_by_name=True)

    example_prompts: Dict[str, Any] = Field(default_factory=dict, alias="example-prompts")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, Any] = Field(default_factory=dict)
    links: Dict[str, Any] = Field(default_factory=dict)
    markdown: Dict[str, Any] = Field(default_factory=dict)


class ValidationRules(BaseModel):
    content: Dict[str, Any] = Field(default_factory=dict)
    structure: Dict[str, Any] = Field(default_factory=dict)


class CategorizationRule(BaseModel):
    condition: str
    action: str
    marker: str


# Persisted (workflow-config.json) key -> attribute name.
PERSISTED_SECTIONS: Dict[str, str] = {
    "sources": "sources",
    "templates": "templates",
    "output": "output",
    "content-rules": "content_rules",
    "validation-rules": "validation_rules",
    "tool-categorization": "tool_categorization",
}


class ParsedConfiguration(BaseModel):
    """
    Structured projection of the prompt. All six sub-sections are always present.

    In memory and in exported JSON the compound names are camelCase
    (contentRules, ...); the persisted workflow configuration uses the
    hyphenated names (content-rules, ...).
    """
    model_config = ConfigDict(populate_by_name=True)

    sources: Sources = Field(default_factory=Sources)
    templates: Templates = Field(default_factory=Templates)
    output: OutputLayout = Field(default_factory=OutputLayout)
    content_rules: ContentRules = Field(default_factory=ContentRules, alias="contentRules")
    validation_rules: ValidationRules = Field(default_factory=ValidationRules, alias="validationRules")
    tool_categorization: Dict[str, CategorizationRule] = Field(
        default_factory=dict, alias="toolCategorization"
    )

    def section_dump(self, attr: str) -> Any:
        """Serialized form of one sub-section, as compared by the differ."""
        value = getattr(self, attr)
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True, exclude_none=True)
        return {k: v.model_dump(mode="json", exclude_none=True) for k, v in value.items()}

    def to_persisted(self) -> Dict[str, Any]:
        return {key: self.section_dump(attr) for key, attr in PERSISTED_SECTIONS.items()}

    @classmethod
    def from_persisted(cls, data: Mapping[str, Any]) -> "ParsedConfiguration":
        """Build from a workflow-config document; missing sections become empty."""
        values = {attr: data[key] for key, attr in PERSISTED_SECTIONS.items() if data.get(key) is not None}
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise StateCorruptedError(f"Persisted configuration does not match the expected shape: {e}") from e


# ── Changes and impact ───────────────────────────────────────────


class Difference(CamelModel):
    """One field-level difference inside a sub-section."""
    type: DifferenceType
    key: str
    old_value: Any = None
    new_value: Any = None


class Change(CamelModel):
    """One changed sub-section."""
    type: ChangeType
    description: str
    impact: ImpactCategory
    severity: Severity
    details: List[Difference] = Field(default_factory=list)


class ImpactAnalysis(CamelModel):
    impacted_modules: List[str] = Field(default_factory=list)
    update_actions: List[str] = Field(default_factory=list)
    manual_review_required: List[str] = Field(default_factory=list)
    estimated_effort: Severity = Severity.LOW

    @computed_field(alias="autoUpdateable")
    @property
    def auto_updateable(self) -> bool:
        return not self.manual_review_required


class ChangeHistoryRecord(CamelModel):
    """Appended once, never edited."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    timestamp: str
    hash: str
    changes: List[Change] = Field(default_factory=list)
    processed: bool = False


class ChangeHistory(CamelModel):
    last_hash: str = ""
    last_analysis: Optional[str] = None
    changes: List[ChangeHistoryRecord] = Field(default_factory=list)


class DetectionResult(CamelModel):
    has_changes: bool
    message: Optional[str] = None
    changes: List[Change] = Field(default_factory=list)
    impact_analysis: Optional[ImpactAnalysis] = None
    content_hash: Optional[str] = None


# ── Reports ──────────────────────────────────────────────────────


class ReportSummary(CamelModel):
    timestamp: str
    total_changes: int
    estimated_effort: Severity
    auto_updateable: bool


class ReportChange(CamelModel):
    type: ChangeType
    description: str
    severity: Severity
    impact: ImpactCategory
    detail_count: int
    details: List[Difference] = Field(default_factory=list)

    def to_change(self) -> Change:
        return Change(
            type=self.type,
            description=self.description,
            impact=self.impact,
            severity=self.severity,
            details=self.details,
        )


class ReportImpact(CamelModel):
    modules_affected: int
    update_actions: int
    manual_review_items: int


class ChangeReport(CamelModel):
    summary: ReportSummary
    changes: List[ReportChange] = Field(default_factory=list)
    impact: ReportImpact
    recommendations: List[str] = Field(default_factory=list)


class UpdateResult(CamelModel):
    """Outcome of one change; failed targets are listed in `errors`, the rest still ran."""
    type: ImpactCategory
    updates: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    success: bool = True


class ManualReviewItem(CamelModel):
    type: ChangeType
    description: str
    severity: Severity
    reason: str
    error: Optional[str] = None


class UpdateSummary(CamelModel):
    timestamp: str
    automatic_updates: int
    manual_review_required: int
    results: List[UpdateResult] = Field(default_factory=list)
    manual_review_items: List[ManualReviewItem] = Field(default_factory=list)
    success: bool
    next_steps: List[str] = Field(default_factory=list)


class ValidationCheck(CamelModel):
    test: str
    status: CheckStatus
    message: str
    details: Optional[Any] = None


class ValidationSummary(CamelModel):
    total: int
    passed: int
    warnings: int
    failed: int


class ValidationReport(CamelModel):
    timestamp: str
    summary: ValidationSummary
    overall_status: Literal["PASS", "PASS_WITH_WARNINGS", "FAIL"]
    results: Dict[str, List[ValidationCheck]]
    recommendations: List[str] = Field(default_factory=list)
