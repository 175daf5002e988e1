"""Tests for the change history stores."""

import json

import pytest

from promptdiff.errors import StateCorruptedError
from promptdiff.history import InMemoryHistoryStore, JsonHistoryStore
from promptdiff.models import Change, ChangeHistory, ChangeType, ImpactCategory, Severity


def sample_change() -> Change:
    return Change(
        type=ChangeType.VALIDATION_RULES,
        description="Quality validation rules changed",
        impact=ImpactCategory.QUALITY_CONTROLLERS,
        severity=Severity.MEDIUM,
    )


class TestHistoryBounding:
    def test_eleventh_record_evicts_oldest(self, memory_history):
        for i in range(10):
            memory_history.append(f"hash-{i}", [])
        assert len(memory_history.read().changes) == 10

        memory_history.append("hash-10", [])
        history = memory_history.read()
        assert [r.hash for r in history.changes] == [f"hash-{i}" for i in range(1, 11)]
        assert history.last_hash == "hash-10"

    def test_custom_limit(self):
        store = InMemoryHistoryStore(max_records=2)
        for i in range(5):
            store.append(f"h{i}", [])
        assert [r.hash for r in store.read().changes] == ["h3", "h4"]

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            InMemoryHistoryStore(max_records=0)


class TestAppend:
    def test_append_sets_last_hash_and_analysis(self, memory_history):
        record = memory_history.append("abc", [sample_change()], timestamp="2025-01-01T00:00:00+00:00")
        history = memory_history.read()
        assert history.last_hash == "abc"
        assert history.last_analysis == "2025-01-01T00:00:00+00:00"
        assert history.changes == [record]
        assert record.processed is False

    def test_read_returns_a_copy(self, memory_history):
        memory_history.append("abc", [])
        snapshot = memory_history.read()
        snapshot.changes.clear()
        assert len(memory_history.read().changes) == 1


class TestJsonHistoryStore:
    def test_missing_file_is_empty_history(self, json_history):
        assert json_history.read() == ChangeHistory()
        assert json_history.last_hash() == ""

    def test_persists_camel_case_document(self, json_history, history_file):
        json_history.append("abc", [sample_change()])
        data = json.loads(history_file.read_text(encoding="utf-8"))
        assert data["lastHash"] == "abc"
        assert "lastAnalysis" in data
        record = data["changes"][0]
        assert record["hash"] == "abc"
        assert record["processed"] is False
        assert record["changes"][0]["type"] == "validation-rules"

        reloaded = JsonHistoryStore(history_file).read()
        assert reloaded.changes[0].changes[0].severity == Severity.MEDIUM

    def test_invalid_json_raises(self, history_file):
        history_file.parent.mkdir(parents=True)
        history_file.write_text("{not json", encoding="utf-8")
        with pytest.raises(StateCorruptedError):
            JsonHistoryStore(history_file).read()

    def test_wrong_shape_raises(self, history_file):
        history_file.parent.mkdir(parents=True)
        history_file.write_text(json.dumps({"changes": "nope"}), encoding="utf-8")
        with pytest.raises(StateCorruptedError):
            JsonHistoryStore(history_file).read()
