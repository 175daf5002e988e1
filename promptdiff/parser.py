"""
Prompt parser: raw prompt markdown -> ParsedConfiguration.

Every extraction is driven by a rule table evaluated once per parse, so each
rule can be tested on its own. A rule whose trigger is absent leaves its
field unset; that is normal, not an error.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

from .models import (
    CategorizationRule,
    ContentRules,
    OutputFiles,
    OutputLayout,
    OutputStructure,
    ParsedConfiguration,
    PromptDocument,
    SourceReference,
    Sources,
    Templates,
    ValidationRules,
)
from .sections import extract_sections
from .utils import slugify


@dataclass(frozen=True)
class TriggerRule:
    """matcher(text) -> bool; when true, `value` is written at `path`."""
    matcher: Callable[[str], bool]
    path: Tuple[str, ...]
    value: Any


def contains(phrase: str) -> Callable[[str], bool]:
    def _match(text: str) -> bool:
        return phrase in text
    _match.__name__ = f"contains({phrase!r})"
    return _match


CONTENT_RULES: List[TriggerRule] = [
    TriggerRule(contains("5 tools in alpha order"), ("example-prompts", "count"), 5),
    TriggerRule(
        contains("variety of questions, statements, incomplete"),
        ("example-prompts", "variety"),
        ["question", "statement", "incomplete", "verbose"],
    ),
    TriggerRule(contains("Required or optional"), ("parameters", "format"), "Required or Optional"),
    TriggerRule(contains("Don't duplicate parameters"), ("parameters", "exclude-global"), True),
    TriggerRule(contains("sentence case formatting"), ("headers", "case"), "sentence"),
    TriggerRule(contains("HTML comment containing the exact command"), ("headers", "html-comments"), True),
    TriggerRule(contains("relative and not absolute"), ("links", "type"), "relative"),
    TriggerRule(
        contains("must not include the language code like `en-us`"),
        ("links", "exclude-language-codes"),
        True,
    ),
    TriggerRule(contains("markdown bullets use `-` (dash)"), ("markdown", "bullets"), "dash"),
    TriggerRule(
        contains("doesn't have a prereqs section. Do not add one"),
        ("markdown", "no-prerequisites"),
        True,
    ),
]

VALIDATION_RULES: List[TriggerRule] = [
    TriggerRule(contains("more than 4 individual tools listed"), ("content", "max-landing-page-tools"), 4),
    TriggerRule(
        contains("All example prompts follow the bold summary format without quotes"),
        ("content", "example-format"),
        "bold-summary-without-quotes",
    ),
    TriggerRule(
        contains('No H3 headings for "Parameters" or "Example prompts"'),
        ("structure", "h3-avoid"),
        ["Parameters", "Example prompts"],
    ),
    TriggerRule(
        contains("Example prompts section appears BEFORE parameters table"),
        ("structure", "example-prompts-placement"),
        "before-parameters",
    ),
]

TOOL_CATEGORIZATION_RULES: List[TriggerRule] = [
    TriggerRule(
        contains("NEW TOOL CATEGORY"),
        ("new-tool",),
        {
            "condition": "exists in azmcp-commands.md but not in tools.json",
            "action": "create-full-documentation",
            "marker": "NEW TOOL CATEGORY",
        },
    ),
    TriggerRule(
        contains("NEW OPERATIONS"),
        ("new-operation",),
        {
            "condition": "tool exists but operation new",
            "action": "create-partial-documentation",
            "marker": "NEW OPERATIONS",
        },
    ),
    TriggerRule(
        contains("Azure Native ISV"),
        ("third-party",),
        {
            "condition": "server is azure-native-isv",
            "action": "use-third-party-branding",
            "marker": "Azure Native ISV",
        },
    ),
]


@dataclass(frozen=True)
class SourceRule:
    """A link whose context matches `keyword` fills the slot at `path` (first wins)."""
    path: Tuple[str, ...]
    keyword: re.Pattern


SOURCE_RULES: List[SourceRule] = [
    SourceRule(("documentation", "references", "tools-json"), re.compile(r"tools\.json", re.I)),
    SourceRule(("engineering", "e2e-test-prompts"), re.compile(r"e2eTestPrompts\.md|test prompts", re.I)),
    SourceRule(("engineering", "azmcp-commands"), re.compile(r"azmcp-commands\.md|\bcommands\b", re.I)),
    SourceRule(("documentation", "navigation", "toc"), re.compile(r"\bTOC\b")),
    SourceRule(("documentation", "navigation", "index"), re.compile(r"\bindex\b|landing page", re.I)),
]

_EXAMPLE_RE = re.compile(r"\bexamples?\b", re.I)
_LINK_RE = re.compile(r"\[([^\]]*)\]\((https?://[^)\s]+)\)")
_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
_TEMPLATE_RE = re.compile(r"`([^`\s]+\.template\.md)`")
_FILE_EXT_RE = re.compile(r"\.(md|json|ya?ml|log|txt)$", re.I)
_TIMESTAMP_RE = re.compile(r"YYYY-MM-DD_HH-mm-ss|\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}")

TIMESTAMP_FORMAT = "YYYY-MM-DD_HH-mm-ss"

# Checked in order; the first category whose keyword occurs wins.
DIRECTORY_TAXONOMY: List[Tuple[str, str]] = [
    ("source-of-truth", "source"),
    ("logs", "log"),
    ("content", "content"),
]


def _set_path(target: Dict[str, Any], path: Sequence[str], value: Any) -> None:
    node = target
    for part in path[:-1]:
        node = node.setdefault(part, {})
    node[path[-1]] = copy.deepcopy(value)


def apply_rules(text: str, rules: Sequence[TriggerRule], skeleton: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Evaluate every rule independently against text."""
    result: Dict[str, Any] = copy.deepcopy(dict(skeleton or {}))
    for rule in rules:
        if rule.matcher(text):
            _set_path(result, rule.path, rule.value)
    return result


def classify_url(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host == "github.com" or host.endswith(".github.com") or host.endswith("githubusercontent.com"):
        return "repository"
    if host in ("learn.microsoft.com", "docs.microsoft.com"):
        return "documentation"
    return "web"


# ── Section extractors ───────────────────────────────────────────


def extract_sources(sections: Mapping[str, List[str]]) -> Sources:
    slots: Dict[Tuple[str, ...], SourceReference] = {}
    examples: Dict[str, SourceReference] = {}
    claimed: set = set()

    for key, lines in sections.items():
        in_example_section = "example" in key
        for line in lines:
            for m in _LINK_RE.finditer(line):
                label, url = m.group(1).strip(), m.group(2)
                if url in claimed:
                    continue
                context = f"{line[:m.start()]} {label}"
                ref = SourceReference(label=label, url=url, kind=classify_url(url))

                for rule in SOURCE_RULES:
                    if rule.path not in slots and rule.keyword.search(context):
                        slots[rule.path] = ref
                        claimed.add(url)
                        break
                else:
                    if in_example_section or _EXAMPLE_RE.search(line):
                        name = slugify(label) or slugify(PurePosixPath(urlparse(url).path).stem)
                        if name and name not in examples:
                            examples[name] = ref
                            claimed.add(url)

    data: Dict[str, Any] = {"engineering": {}, "documentation": {"references": {}, "examples": {}, "navigation": {}}}
    for path, ref in slots.items():
        _set_path(data, path, ref.model_dump())
    data["documentation"]["examples"] = {k: v.model_dump() for k, v in examples.items()}
    return Sources.model_validate(data)


def extract_templates(text: str) -> Templates:
    primary: Optional[str] = None
    partial: Optional[str] = None
    for m in _TEMPLATE_RE.finditer(text):
        name = m.group(1)
        if "generated-documentation" in name:
            primary = primary or name
        else:
            partial = partial or name
    return Templates(primary=primary, partial=partial)


def _classify_directory(fragment: str, description: str) -> Optional[str]:
    """The path decides; the text after it only when the path names no category."""
    for text in (fragment, description):
        low = text.lower()
        for category, keyword in DIRECTORY_TAXONOMY:
            if keyword in low:
                return category
    return None


def _classify_file(fragment: str) -> str:
    low = fragment.lower()
    if "source-of-truth" in low:
        return "source-of-truth"
    if low.endswith((".log", ".txt")) or "logs/" in low:
        return "logs"
    return "content"


def extract_output(text: str) -> OutputLayout:
    directories: List[str] = []
    files: Dict[str, List[str]] = {"content": [], "source-of-truth": [], "logs": []}

    for line in text.splitlines():
        for m in _INLINE_CODE_RE.finditer(line):
            fragment = m.group(1).strip()
            if fragment.endswith(".template.md"):
                continue
            if " " not in fragment and _FILE_EXT_RE.search(fragment):
                name = PurePosixPath(fragment).name
                bucket = files[_classify_file(fragment)]
                if name not in bucket:
                    bucket.append(name)
            elif "generated/" in fragment or fragment.endswith("/"):
                category = _classify_directory(fragment, line[m.end():])
                if category and category not in directories:
                    directories.append(category)

    structure = OutputStructure(
        directories=directories,
        timestamp_format=TIMESTAMP_FORMAT if _TIMESTAMP_RE.search(text) else None,
    )
    return OutputLayout(structure=structure, files=OutputFiles.model_validate(files))


def extract_content_rules(text: str) -> ContentRules:
    skeleton = {"example-prompts": {}, "parameters": {}, "headers": {}, "links": {}, "markdown": {}}
    return ContentRules.model_validate(apply_rules(text, CONTENT_RULES, skeleton))


def extract_validation_rules(text: str) -> ValidationRules:
    return ValidationRules.model_validate(apply_rules(text, VALIDATION_RULES, {"content": {}, "structure": {}}))


def extract_tool_categorization(text: str) -> Dict[str, CategorizationRule]:
    found = apply_rules(text, TOOL_CATEGORIZATION_RULES)
    return {key: CategorizationRule.model_validate(value) for key, value in found.items()}


def parse_prompt_text(text: str, sections: Optional[Mapping[str, List[str]]] = None) -> ParsedConfiguration:
    """Build the full configuration; all six sub-sections are always present."""
    if sections is None:
        sections = extract_sections(text)
    return ParsedConfiguration(
        sources=extract_sources(sections),
        templates=extract_templates(text),
        output=extract_output(text),
        content_rules=extract_content_rules(text),
        validation_rules=extract_validation_rules(text),
        tool_categorization=extract_tool_categorization(text),
    )


class PromptParser:
    """Reads the prompt file from disk and parses it."""

    def __init__(self, prompt_path: str | Path):
        self.prompt_path = Path(prompt_path)

    def read_document(self) -> PromptDocument:
        return PromptDocument.from_path(self.prompt_path)

    def parse_prompt(self) -> ParsedConfiguration:
        return parse_prompt_text(self.read_document().content)
