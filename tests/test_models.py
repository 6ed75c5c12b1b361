"""Tests for the lenient classification models."""

import pytest
from pydantic import ValidationError

from cerebro.models import ClassificationMetadata, ClassificationResult, EntryMetadata


class TestClassificationMetadata:
    """Badly typed fields degrade instead of failing."""

    def test_unknown_keys_dropped(self):
        metadata = ClassificationMetadata.model_validate({"summary": "x", "mood": "happy"})

        assert not hasattr(metadata, "mood")
        assert metadata.summary == "x"

    def test_text_fields_coerced(self):
        metadata = ClassificationMetadata.model_validate({
            "summary": "  Ler livro  ",
            "unit": 10,
            "emoji": True,
            "priority": ["high"],
        })

        assert metadata.summary == "Ler livro"
        assert metadata.unit == "10"
        assert metadata.emoji is None
        assert metadata.priority is None

    def test_tags_keep_only_text(self):
        metadata = ClassificationMetadata.model_validate({"tags": ["a", None, "", 3, {"x": 1}]})

        assert metadata.tags == ["a", "3"]

    def test_tags_not_a_list(self):
        assert ClassificationMetadata.model_validate({"tags": "a,b"}).tags == []

    @pytest.mark.parametrize("raw, expected", [
        (10, 10.0),
        ("2.5", 2.5),
        (0, None),
        (-3, None),
        ("dez", None),
        (True, None),
        (float("nan"), None),
    ])
    def test_target(self, raw, expected):
        assert ClassificationMetadata.model_validate({"target": raw}).target == expected

    def test_checklist_forms(self):
        metadata = ClassificationMetadata.model_validate({
            "checklist": ["leite", {"text": "ovos", "done": True}, {"done": True}, "", 7],
        })

        assert [(item.text, item.done) for item in metadata.checklist] == [
            ("leite", False),
            ("ovos", True),
            ("7", False),
        ]


class TestClassificationResult:
    """Top-level result shape."""

    def test_required_keys(self):
        with pytest.raises(ValidationError):
            ClassificationResult.model_validate({"category_slug": "work"})

    def test_nullable_required_keys(self):
        result = ClassificationResult.model_validate({"category_slug": None, "entry_type": None})

        assert result.category_slug is None
        assert result.entry_type is None
        assert result.metadata is None

    def test_non_dict_metadata_dropped(self):
        result = ClassificationResult.model_validate({
            "category_slug": "work",
            "entry_type": "task",
            "metadata": "high priority",
        })

        assert result.metadata is None


class TestEntryMetadata:
    """Sanitized metadata is strict."""

    def test_rejects_unknown_priority(self):
        with pytest.raises(ValidationError):
            EntryMetadata(priority="critical")

    def test_rejects_extra_keys(self):
        with pytest.raises(ValidationError):
            EntryMetadata.model_validate({"mood": "happy"})
