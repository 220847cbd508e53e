"""
Tests for the knowledge-base catalog.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from invisible_hr.exceptions import DocumentNotFoundError, EmptyDocumentError, UnsupportedFileTypeError, ValidationError
from invisible_hr.knowledge_base import KnowledgeBase, sanitize_filename

POLICY_TEXT = b"Remote work policy: Employees may work from home up to 2 days per week."


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def kb(tmp_path, pipeline):
    return KnowledgeBase(tmp_path / "kb", pipeline, clock=FakeClock())


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("  Leave Policy 2025 ", "Leave-Policy-2025"),
            ("Réglement/intérieur?", "Rglementintrieur"),
            ("***", "file"),
            ("", "file"),
            ("a" * 150, "a" * 100),
        ],
    )
    def test_sanitize(self, name, expected):
        assert sanitize_filename(name) == expected


class TestUpload:
    def test_upload_stores_and_indexes(self, kb, store):
        entry = kb.upload("Remote Work", "Policy", POLICY_TEXT, "remote.txt", description="WFH rules")

        assert entry.id.endswith("_Remote-Work.txt")
        assert entry.category == "Policy"
        assert entry.chunks_embedded == 1
        assert (kb.base_dir / "Policy" / entry.filename).read_bytes() == POLICY_TEXT
        assert store.count({"source": entry.id}) == 1
        assert kb.get(entry.id) == entry

    def test_unknown_category_maps_to_other(self, kb):
        assert kb.upload("Notes", "Random", POLICY_TEXT, "notes.txt").category == "Other"

    @pytest.mark.parametrize(
        "name,description",
        [("", ""), ("   ", ""), ("x" * 101, ""), ("ok", "d" * 501)],
    )
    def test_validation(self, kb, name, description):
        with pytest.raises(ValidationError):
            kb.upload(name, "Policy", POLICY_TEXT, "a.txt", description=description)

    def test_unsupported_extension(self, kb):
        with pytest.raises(UnsupportedFileTypeError):
            kb.upload("Sheet", "Policy", b"a,b", "sheet.csv")

    def test_failed_ingestion_leaves_no_trace(self, kb):
        with pytest.raises(EmptyDocumentError):
            kb.upload("Empty", "Policy", b"   ", "empty.txt")

        assert kb.list_files(include_deleted=True) == []
        assert list((kb.base_dir / "Policy").iterdir()) == []


class TestCatalog:
    def test_list_filters_and_sorts(self, kb):
        a = kb.upload("Alpha", "Policy", POLICY_TEXT, "a.txt", description="remote")
        b = kb.upload("Bravo", "FAQ", POLICY_TEXT, "b.txt")
        c = kb.upload("Charlie", "Policy", POLICY_TEXT, "c.txt")

        assert [f.id for f in kb.list_files()] == [c.id, b.id, a.id]
        assert [f.id for f in kb.list_files(sort_by="name", sort_dir="asc")] == [a.id, b.id, c.id]
        assert [f.id for f in kb.list_files(category="FAQ")] == [b.id]
        assert [f.id for f in kb.list_files(q="REMOTE")] == [a.id]

    def test_update_renames_and_moves(self, kb):
        entry = kb.upload("Old Name", "Policy", POLICY_TEXT, "a.txt")

        updated = kb.update(entry.id, name="New Name", category="Manual", description="moved")

        assert updated.id == entry.id
        assert updated.name == "New-Name"
        assert updated.filename.endswith("_New-Name.txt")
        assert (kb.base_dir / "Manual" / updated.filename).exists()
        assert not (kb.base_dir / "Policy" / entry.filename).exists()
        assert kb.read_bytes(entry.id) == POLICY_TEXT

    def test_rename_updates_vector_metadata(self, kb, store, embedder):
        entry = kb.upload("Old Name", "Policy", POLICY_TEXT, "a.txt")

        updated = kb.update(entry.id, name="New Name")

        results = store.query(embedder.embed(POLICY_TEXT.decode()), 5)
        assert store.count({"source": entry.id}) == 1
        assert [r.metadata["filename"] for r in results] == [updated.filename]

    def test_recategorize_keeps_vectors(self, kb, store, embedder):
        entry = kb.upload("Remote", "Policy", POLICY_TEXT, "a.txt")
        calls_before = len(embedder.calls)

        kb.update(entry.id, category="FAQ")

        assert len(embedder.calls) == calls_before
        assert store.count({"source": entry.id}) == 1

    def test_soft_delete_and_restore(self, kb, store):
        entry = kb.upload("Remote", "Policy", POLICY_TEXT, "remote.txt")

        deleted = kb.delete(entry.id)
        assert deleted.deleted_at is not None
        assert store.count({"source": entry.id}) == 0
        assert kb.list_files() == []
        assert len(kb.list_files(include_deleted=True)) == 1

        restored = kb.restore(entry.id)
        assert restored.deleted_at is None
        assert store.count({"source": entry.id}) == 1

    def test_bulk_delete_skips_unknown(self, kb):
        a = kb.upload("A", "Policy", POLICY_TEXT, "a.txt")
        b = kb.upload("B", "Policy", POLICY_TEXT, "b.txt")

        assert kb.bulk_delete([a.id, "missing", b.id]) == [a.id, b.id]
        assert kb.list_files() == []

    def test_bulk_delete_requires_ids(self, kb):
        with pytest.raises(ValidationError):
            kb.bulk_delete([])

    def test_unknown_id(self, kb):
        with pytest.raises(DocumentNotFoundError):
            kb.get("nope")

    def test_index_survives_reload(self, kb, tmp_path):
        entry = kb.upload("Remote", "Policy", POLICY_TEXT, "remote.txt")

        reloaded = KnowledgeBase(tmp_path / "kb", MagicMock())

        assert reloaded.get(entry.id).name == "Remote"
