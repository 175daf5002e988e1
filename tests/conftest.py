"""
Pytest configuration and shared fixtures for promptdiff tests.
"""
import textwrap

import pytest

from promptdiff.config import PromptDiffConfig
from promptdiff.history import InMemoryHistoryStore, JsonHistoryStore
from promptdiff.workflow_config import WorkflowConfigStore


SAMPLE_PROMPT = textwrap.dedent(
    """\
    # Azure MCP documentation generator

    Generate one documentation page for every Azure MCP tool.

    ## Sources

    - Read the [azmcp-commands.md](https://github.com/Azure/azure-mcp/blob/main/docs/azmcp-commands.md) file for commands.
    - Use [tools.json](https://github.com/Azure/azure-mcp/blob/main/tools.json) for the tool list.
    - Test prompts come from [e2eTestPrompts.md](https://github.com/Azure/azure-mcp/blob/main/e2eTestPrompts.md).
    - Update the [TOC](https://learn.microsoft.com/azure/developer/azure-mcp-server/toc.yml) last.

    ## Examples

    - [Storage](https://learn.microsoft.com/azure/developer/azure-mcp-server/tools/azure-storage)

    ## Templates

    Use `generated-documentation.template.md` for full pages and `new-operations.template.md` for partial pages.

    ## Rules

    - Show 5 tools in alpha order for each service.
    - Use sentence case formatting for all headers.
    - The landing page must not have more than 4 individual tools listed.
    - Mark a NEW TOOL CATEGORY when a service is missing from the tool list.

    ## Output

    - Save documentation pages in `generated/content/` as markdown.
    - Keep the source of truth in `generated/source-of-truth/` for review.
    - Write logs to `generated/logs/` during each run.
    - Name files like `azure-storage.md`, log to `generation.log` and record `source-of-truth.json`.
    - Timestamp folders use `YYYY-MM-DD_HH-mm-ss`.
    """
)


@pytest.fixture
def sample_prompt():
    """Prompt text with sources, templates, rules and output layout"""
    return SAMPLE_PROMPT


@pytest.fixture
def prompt_file(tmp_path):
    path = tmp_path / "create-docs.prompt.md"
    path.write_text(SAMPLE_PROMPT, encoding="utf-8")
    return path


@pytest.fixture
def history_file(tmp_path):
    return tmp_path / "generated" / "logs" / "change-history.json"


@pytest.fixture
def json_history(history_file):
    return JsonHistoryStore(history_file)


@pytest.fixture
def memory_history():
    return InMemoryHistoryStore()


@pytest.fixture
def config_store(tmp_path):
    return WorkflowConfigStore(tmp_path / "generated" / "workflow" / "workflow-config.json")


@pytest.fixture
def targets_dir(tmp_path):
    """Downstream generator modules holding the constants apply rewrites"""
    root = tmp_path / "src"
    modules = {
        "data-extractors/azmcp-commands-extractor.py": (
            'AZMCP_COMMANDS_URL = "https://github.com/Azure/azure-mcp/blob/main/docs/azmcp-commands.md"\n'
        ),
        "data-extractors/tools-json-processor.py": (
            'TOOLS_JSON_URL = "https://github.com/Azure/azure-mcp/blob/main/tools.json"\n'
        ),
        "content-builders/operation-builder.py": 'HEADER_CASE = "title"\nBULLET_STYLE = "asterisk"\n',
        "quality-controllers/content-validator.py": "MAX_LANDING_PAGE_TOOLS = 6\n",
        "file-generators/output-file-manager.py": 'TIMESTAMP_FORMAT = "YYYY-MM-DD"\n',
    }
    for rel, text in modules.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def app_config(tmp_path, prompt_file, targets_dir):
    """PromptDiffConfig with every path inside tmp_path"""
    return PromptDiffConfig.model_validate(
        {
            "project": {
                "prompt_file": str(prompt_file),
                "workflow_config": str(tmp_path / "generated" / "workflow" / "workflow-config.json"),
                "history_file": str(tmp_path / "generated" / "logs" / "change-history.json"),
                "reports_dir": str(tmp_path / "generated" / "reports"),
                "targets_dir": str(targets_dir),
                "converted_json": str(tmp_path / "generated" / "prompt" / "prompt.json"),
            },
            "validation": {"required_modules": [], "entry_points": {}},
            "runtime": {"verbose": False},
        }
    )
