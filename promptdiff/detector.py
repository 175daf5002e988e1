"""
Prompt change detection.

Flow: hash the prompt -> compare with the last recorded hash -> (only if it
differs) parse, diff against the persisted configuration, classify impact,
record the change event.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from .config import EffortPolicy
from .differ import analyze_impact, diff_configurations
from .history import HistoryStore
from .models import DetectionResult, ImpactAnalysis, ParsedConfiguration, PromptDocument, Severity
from .parser import parse_prompt_text
from .workflow_config import WorkflowConfigStore

logger = logging.getLogger(__name__)

MSG_FIRST_RUN = "First-time execution: No previous hash found, assuming changes"
MSG_UNCHANGED = "No changes detected in prompt file"
MSG_IN_SYNC = "Prompt file changed but configuration is still in sync"


class ChangeDetector:
    def __init__(
        self,
        prompt_path: str | Path,
        history_store: HistoryStore,
        config_store: WorkflowConfigStore,
        *,
        policy: Optional[EffortPolicy] = None,
        parser: Callable[[str], ParsedConfiguration] = parse_prompt_text,
    ):
        self.prompt_path = Path(prompt_path)
        self.history_store = history_store
        self.config_store = config_store
        self.policy = policy or EffortPolicy()
        self.parser = parser

    def read_prompt(self) -> PromptDocument:
        return PromptDocument.from_path(self.prompt_path)

    def compute_prompt_hash(self) -> str:
        return self.read_prompt().content_hash

    def detect_prompt_changes(self) -> DetectionResult:
        document = self.read_prompt()
        last_hash = self.history_store.last_hash()

        if not last_hash:
            # Baseline record so that an unchanged second run takes the fast path.
            self.history_store.append(document.content_hash, [])
            logger.info("No previous prompt hash, recorded baseline")
            return DetectionResult(
                has_changes=True,
                message=MSG_FIRST_RUN,
                changes=[],
                impact_analysis=ImpactAnalysis(
                    update_actions=["Initialize workflow configuration"],
                    estimated_effort=Severity.LOW,
                ),
                content_hash=document.content_hash,
            )

        if document.content_hash == last_hash:
            return DetectionResult(has_changes=False, message=MSG_UNCHANGED, content_hash=document.content_hash)

        current = self.parser(document.content)
        previous = self.config_store.load_configuration()
        changes = diff_configurations(current, previous)

        if not changes:
            return DetectionResult(has_changes=False, message=MSG_IN_SYNC, content_hash=document.content_hash)

        self.history_store.append(document.content_hash, changes)
        logger.info(f"Detected {len(changes)} changed section(s) in {self.prompt_path}")
        return DetectionResult(
            has_changes=True,
            changes=changes,
            impact_analysis=analyze_impact(changes, self.policy),
            content_hash=document.content_hash,
        )
