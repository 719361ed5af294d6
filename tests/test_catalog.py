"""Tests for the catalog store and merge engine."""

import pytest

from catalog.merge import MergeEngine, seed_descriptor, to_descriptor
from catalog.store import CatalogStore, ModelDescriptor, display_name
from catalog.tasks import TaskCode, TaskKind
from registry.base import RawModelRecord


def raw(model_id, tag="text-generation", **kwargs):
    return RawModelRecord(id=model_id, pipeline_tag=tag, **kwargs)


def descriptor(model_id, kind=TaskKind.SENTIMENT):
    return ModelDescriptor(id=model_id, name=display_name(model_id), task=TaskCode.of(kind))


@pytest.fixture
def seeded():
    """A catalog holding 20 static models m0..m19."""
    return CatalogStore(descriptor(f"org/m{i}") for i in range(20))


class TestDisplayName:
    def test_last_segment_title_cased(self):
        assert display_name("distilbert/distilbert-base-uncased") == "Distilbert Base Uncased"

    def test_without_namespace(self):
        assert display_name("gpt2") == "Gpt2"


class TestModelDescriptor:
    def test_identity_is_id_only(self):
        static = ModelDescriptor(id="org/a", name="A", task=TaskCode.of(TaskKind.SENTIMENT))
        dynamic = ModelDescriptor(id="org/a", name="Other", is_dynamic=True, downloads=10)
        assert static == dynamic
        assert hash(static) == hash(dynamic)
        assert len({static, dynamic}) == 1

    def test_different_ids_differ(self):
        assert descriptor("org/a") != descriptor("org/b")


class TestCatalogStore:
    def test_append_preserves_order(self):
        store = CatalogStore()
        store.append([descriptor("a/1"), descriptor("a/2")])
        store.append([descriptor("a/3")])
        assert [d.id for d in store] == ["a/1", "a/2", "a/3"]

    def test_current_ids_and_lookup(self, seeded):
        assert len(seeded.current_ids()) == 20
        assert "org/m3" in seeded
        assert seeded.get("org/m3").id == "org/m3"
        assert seeded.get("org/missing") is None

    def test_snapshot_is_detached(self, seeded):
        snap = seeded.snapshot()
        seeded.append([descriptor("org/extra")])
        assert len(snap) == 20
        assert len(seeded) == 21

    def test_group_by_task(self):
        store = CatalogStore([
            descriptor("a/1", TaskKind.SENTIMENT),
            descriptor("a/2", TaskKind.TRANSLATION),
            descriptor("a/3", TaskKind.SENTIMENT),
        ])
        groups = store.group_by_task()
        assert list(groups) == ["sentiment", "translation"]
        assert [d.id for d in groups["sentiment"]] == ["a/1", "a/3"]


class TestDescriptors:
    def test_to_descriptor_classifies_and_marks_dynamic(self):
        d = to_descriptor(raw("org/bart-large-cnn", tag="summarization", downloads=12))
        assert d.task.kind is TaskKind.SUMMARIZATION
        assert d.is_dynamic is True
        assert d.name == "Bart Large Cnn"
        assert d.downloads == 12

    def test_missing_tag_is_unknown(self):
        d = to_descriptor(raw("org/x", tag=None))
        assert d.task == TaskCode.unknown()

    def test_negative_counts_clamped(self):
        d = to_descriptor(raw("org/x", downloads=-5, likes=-1))
        assert d.downloads == 0
        assert d.likes == 0

    def test_seed_descriptor_uses_task_label(self):
        record = RawModelRecord.model_validate(
            {"id": "deepset/roberta-base-squad2", "name": "RoBERTa QA", "task": "question-answering"}
        )
        d = seed_descriptor(record)
        assert d.task.kind is TaskKind.QUESTION_ANSWERING
        assert d.name == "RoBERTa QA"
        assert d.is_dynamic is False

    def test_seed_descriptor_respects_explicit_dynamic_flag(self):
        record = RawModelRecord.model_validate({"id": "org/x", "task": "sentiment", "isDynamic": True})
        assert seed_descriptor(record).is_dynamic is True


class TestMergeEngine:
    def test_only_new_ids_appended(self, seeded):
        result = MergeEngine().merge(seeded, [raw("org/m1"), raw("org/new1"), raw("org/new2")])
        assert [d.id for d in result.added] == ["org/new1", "org/new2"]
        assert len(seeded) == 22

    def test_existing_entries_untouched(self, seeded):
        before = seeded.snapshot()
        MergeEngine().merge(seeded, [raw("org/m0", tag="translation"), raw("org/new")])
        assert seeded.snapshot()[:20] == before
        assert seeded.get("org/m0").task.kind is TaskKind.SENTIMENT

    def test_merge_is_idempotent(self, seeded):
        engine = MergeEngine()
        batch = [raw("org/new1"), raw("org/new2")]
        engine.merge(seeded, batch)
        after_first = seeded.snapshot()
        second = engine.merge(seeded, batch)
        assert second.is_empty
        assert seeded.snapshot() == after_first

    def test_empty_batch(self, seeded):
        result = MergeEngine().merge(seeded, [])
        assert result.added_count == 0
        assert len(seeded) == 20

    def test_catalog_only_grows(self, seeded):
        engine = MergeEngine()
        sizes = [len(seeded)]
        for batch in ([raw("org/m2")], [raw("org/a")], [], [raw("org/a"), raw("org/b")]):
            engine.merge(seeded, batch)
            sizes.append(len(seeded))
        assert sizes == sorted(sizes)
        assert sizes[-1] == 22

    def test_within_cycle_duplicates_kept_by_default(self, seeded):
        result = MergeEngine().merge_cycle(
            seeded, [[raw("org/dup"), raw("org/x")], [raw("org/dup", tag="translation")]]
        )
        assert [d.id for d in result.added] == ["org/dup", "org/x", "org/dup"]
        assert len(seeded) == 23

    def test_within_cycle_dedupe_switch(self, seeded):
        result = MergeEngine(dedupe_within_cycle=True).merge_cycle(
            seeded, [[raw("org/dup"), raw("org/x")], [raw("org/dup", tag="translation")]]
        )
        assert [d.id for d in result.added] == ["org/dup", "org/x"]
        assert result.added[0].task.kind is TaskKind.TEXT_GENERATION

    def test_load_more_cycle_scenario(self, seeded):
        # 10 fetched, 3 already present -> 7 appended after the original 20
        fetched = [raw(f"org/m{i}") for i in range(3)] + [raw(f"org/n{i}") for i in range(7)]
        result = MergeEngine().merge_cycle(seeded, [fetched[:5], fetched[5:]])
        assert result.added_count == 7
        assert len(seeded) == 27
        assert [d.id for d in seeded][20:] == [f"org/n{i}" for i in range(7)]
        assert all(d.is_dynamic for d in result.added)

    def test_to_dict(self, seeded):
        result = MergeEngine().merge(seeded, [raw("org/new")])
        data = result.to_dict()
        assert data["added_count"] == 1
        assert data["added"][0]["task"] == "text-generation"
