"""Tests for prompt -> JSON conversion."""

import json

from promptdiff.converter import DEFAULT_VERSION, convert_prompt, convert_prompt_file
from promptdiff.models import PromptDocument
from promptdiff.utils import sha256_hex


class TestConvertPrompt:
    def test_metadata_from_headings(self, sample_prompt):
        converted = convert_prompt(PromptDocument.from_text(sample_prompt), last_modified="2025-01-01T00:00:00+00:00")
        meta = converted.metadata
        assert meta.title == "Azure MCP documentation generator"
        assert meta.description == "Generate one documentation page for every Azure MCP tool."
        assert meta.version == DEFAULT_VERSION
        assert meta.sha256 == sha256_hex(sample_prompt)
        assert meta.content_length == len(sample_prompt)
        assert "rules" in converted.sections
        assert converted.sections["examples"].startswith("- [Storage]")

    def test_metadata_from_front_matter(self):
        text = "---\ntitle: Docs prompt\ndescription: Builds docs\nversion: 2.1.0\n---\n# Ignored title\n\nBody.\n"
        meta = convert_prompt(PromptDocument.from_text(text)).metadata
        assert (meta.title, meta.description, meta.version) == ("Docs prompt", "Builds docs", "2.1.0")

    def test_json_document(self, prompt_file, tmp_path):
        path = convert_prompt_file(prompt_file, tmp_path / "out" / "prompt.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"metadata", "sections", "configuration"}
        assert {"lastModified", "sha256", "contentLength"} <= set(data["metadata"])
        assert data["configuration"]["contentRules"]["example-prompts"] == {"count": 5}
        assert data["configuration"]["templates"]["primary"] == "generated-documentation.template.md"
