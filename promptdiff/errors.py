"""
Exception taxonomy.

Lower layers raise these; the CLI turns them into a message and exit code 1.
"""

from __future__ import annotations


class PromptDiffError(Exception):
    """Base class for all promptdiff failures."""


class PromptReadError(PromptDiffError):
    """The prompt file is missing or cannot be decoded."""


class PromptParseError(PromptDiffError):
    """The prompt file is readable but structurally malformed (e.g. front matter)."""


class StateCorruptedError(PromptDiffError):
    """A persisted JSON document (history, workflow config, report) is not valid."""


class UpdateError(PromptDiffError):
    """A downstream module could not be rewritten."""
