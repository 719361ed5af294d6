"""Tests for task codes and the registry tag classifier."""

import pytest

from catalog.tasks import TaskCode, TaskKind, classify


class TestClassify:
    @pytest.mark.parametrize("tag,kind", [
        ("text-classification", TaskKind.SENTIMENT),
        ("sentiment-analysis", TaskKind.SENTIMENT),
        ("zero-shot-classification", TaskKind.ZERO_SHOT),
        ("text-generation", TaskKind.TEXT_GENERATION),
        ("translation", TaskKind.TRANSLATION),
        ("translation_en_to_fr", TaskKind.TRANSLATION),
        ("summarization", TaskKind.SUMMARIZATION),
    ])
    def test_known_tags(self, tag, kind):
        code = classify(tag)
        assert code.kind is kind
        assert code.label == kind.value
        assert code.is_known

    def test_first_matching_rule_wins(self):
        # contains both "text-classification" and "zero-shot"
        assert classify("zero-shot-text-classification").kind is TaskKind.SENTIMENT
        # contains both "text-generation" and "translation"
        assert classify("text-generation-translation").kind is TaskKind.TEXT_GENERATION

    def test_unrecognised_tag_is_kept_as_label(self):
        code = classify("image-classification-3d")
        assert code.kind is TaskKind.UNKNOWN
        assert code.label == "image-classification-3d"
        assert not code.is_known

    def test_question_answering_tag_is_unknown(self):
        code = classify("question-answering")
        assert code.kind is TaskKind.UNKNOWN
        assert code.label == "question-answering"

    @pytest.mark.parametrize("tag", [None, ""])
    def test_missing_tag(self, tag):
        code = classify(tag)
        assert code.kind is TaskKind.UNKNOWN
        assert code.label == "unknown"

    def test_matching_is_case_sensitive(self):
        assert classify("Text-Generation").kind is TaskKind.UNKNOWN


class TestTaskCode:
    def test_parse_canonical_label(self):
        assert TaskCode.parse("question-answering") == TaskCode.of(TaskKind.QUESTION_ANSWERING)
        assert TaskCode.parse("zero-shot").kind is TaskKind.ZERO_SHOT

    def test_parse_non_canonical_label(self):
        code = TaskCode.parse("fill-mask")
        assert code.kind is TaskKind.UNKNOWN
        assert code.label == "fill-mask"

    def test_parse_empty(self):
        assert TaskCode.parse(None) == TaskCode.unknown()

    def test_str_is_label(self):
        assert str(TaskCode.of(TaskKind.TRANSLATION)) == "translation"
        assert str(TaskCode.unknown("fill-mask")) == "fill-mask"
