"""Tests for the response normalizer."""

import pytest

from cerebro.models import ClassificationResult
from cerebro.normalizer import normalize, sanitize_choice, sanitize_due_date


def _classification(**overrides):
    payload = {
        "category_slug": "work",
        "entry_type": "task",
        "status": "pending",
        "metadata": {"summary": "Enviar relatório", "priority": "high"},
    }
    payload.update(overrides)
    return ClassificationResult.model_validate(payload)


class TestUnavailableClassification:
    """Defaults when the classifier gave nothing."""

    def test_defaults(self):
        result = normalize("lembrar do aniversário da Ana", None)

        assert result.entry_type == "note"
        assert result.category_slug == "ideas"
        assert result.priority == "medium"
        assert result.status == "pending"
        assert result.metadata.summary == "lembrar do aniversário da Ana"
        assert result.classified is False

    def test_urgent_keyword_without_ai(self):
        result = normalize("comprar leite urgente", None)

        assert result.entry_type == "note"
        assert result.priority == "urgent"
        assert result.category_slug == "ideas"

    def test_missing_metadata_gets_default_metadata(self):
        result = normalize("ler artigo", _classification(metadata=None))

        assert result.priority == "medium"
        assert result.metadata.summary == "ler artigo"
        assert result.classified is True

    def test_empty_slug_and_type_default(self):
        result = normalize("algo", _classification(category_slug="", entry_type=None))

        assert result.category_slug == "ideas"
        assert result.entry_type == "note"


class TestOverrides:
    """Keyword overrides win over the model."""

    @pytest.mark.parametrize("model_priority", ["low", "medium", "high", None, "bogus"])
    def test_urgent_overrides_model_priority(self, model_priority):
        classification = _classification(metadata={"priority": model_priority})

        result = normalize("Pagar aluguel PRA ONTEM", classification)

        assert result.priority == "urgent"
        assert result.metadata.priority == "urgent"

    def test_progress_keyword_overrides_status(self):
        result = normalize("estou fazendo o TCC", _classification(status="done"))

        assert result.status == "in_progress"

    def test_model_status_kept_without_keyword(self):
        result = normalize("já paguei a conta", _classification(status="done"))

        assert result.status == "done"


class TestEnumSanitization:
    """Out-of-range enum values become safe defaults."""

    @pytest.mark.parametrize("entry_type", ["reminder", "event", "todo", "123"])
    def test_unknown_entry_type_becomes_note(self, entry_type):
        assert normalize("texto", _classification(entry_type=entry_type)).entry_type == "note"

    @pytest.mark.parametrize("raw, expected", [
        ("BOOKMARK", "bookmark"),
        ("Insight", "insight"),
        (" task ", "task"),
        ("GOAL", "goal"),
    ])
    def test_entry_type_is_lowercased(self, raw, expected):
        assert normalize("texto", _classification(entry_type=raw)).entry_type == expected

    @pytest.mark.parametrize("priority", ["critical", "asap", "P1"])
    def test_unknown_priority_becomes_none(self, priority):
        result = normalize("texto", _classification(metadata={"priority": priority}))

        assert result.priority is None
        assert result.metadata.priority is None

    def test_priority_is_lowercased(self):
        assert normalize("texto", _classification(metadata={"priority": "HIGH"})).priority == "high"

    def test_unknown_status_becomes_pending(self):
        assert normalize("texto", _classification(status="blocked")).status == "pending"

    def test_status_is_lowercased(self):
        assert normalize("texto", _classification(status="In_Progress")).status == "in_progress"

    @pytest.mark.parametrize("period, expected", [
        ("Monthly", "monthly"),
        ("daily", "daily"),
        ("yearly", "weekly"),
        (None, "weekly"),
    ])
    def test_period_type(self, period, expected):
        classification = _classification(entry_type="goal", metadata={"period_type": period})

        assert normalize("meta", classification).period_type == expected

    def test_category_slug_lowercased(self):
        assert normalize("texto", _classification(category_slug="Work")).category_slug == "work"


class TestMetadataPassThrough:
    """Optional metadata carried onto the entry."""

    def test_due_date_and_checklist(self):
        classification = _classification(metadata={
            "due_date": "2026-10-23T09:00:00Z",
            "checklist": ["leite", {"text": "ovos", "done": True}],
            "tags": ["mercado"],
        })

        result = normalize("comprar: leite, ovos", classification)

        assert result.due_date == "2026-10-23"
        assert [item.text for item in result.checklist] == ["leite", "ovos"]
        assert [item.done for item in result.checklist] == [False, True]
        assert result.metadata.checklist == result.checklist
        assert result.tags == ["mercado"]

    def test_unparseable_due_date_dropped(self):
        result = normalize("texto", _classification(metadata={"due_date": "sexta que vem"}))

        assert result.due_date is None

    def test_absent_fields_default_empty(self):
        result = normalize("texto", _classification(metadata={}))

        assert result.due_date is None
        assert result.checklist == []
        assert result.tags == []


class TestPurity:
    """Normalization has no hidden state."""

    def test_same_input_same_output(self):
        classification = _classification(entry_type="BOOKMARK", metadata={"priority": "weird"})

        assert normalize("urgente", classification) == normalize("urgente", classification)

    def test_input_not_mutated(self):
        classification = _classification(metadata={"priority": "low"})
        before = classification.model_dump()

        normalize("isso é urgente", classification)

        assert classification.model_dump() == before


class TestHelpers:
    """sanitize_choice / sanitize_due_date."""

    def test_sanitize_choice(self):
        assert sanitize_choice("DONE", ("pending", "done"), "pending") == "done"
        assert sanitize_choice("nope", ("pending", "done"), "pending") == "pending"
        assert sanitize_choice(None, ("a",), None) is None

    def test_sanitize_due_date(self):
        assert sanitize_due_date("2026-01-05") == "2026-01-05"
        assert sanitize_due_date("2026-13-40") is None
        assert sanitize_due_date(None) is None
