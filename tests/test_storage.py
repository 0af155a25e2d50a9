"""
Session Persistence Tests

Backends store opaque blobs; unreadable storage reads as "nothing saved".
"""

import json
import logging
import os

import pytest

from tracker.storage import STORAGE_KEY, InMemoryPersistence, FilePersistence


@pytest.fixture(params=["memory", "file"])
def backend(request, tmp_path):
    if request.param == "memory":
        return InMemoryPersistence()
    return FilePersistence(str(tmp_path / "sessions"))


class TestBackendContract:
    """Both backends honour load/save/clear."""

    def test_missing_key_is_none(self, backend):
        assert backend.load() is None

    def test_save_then_load(self, backend):
        backend.save('{"v": "2.1.0"}')
        assert backend.load() == '{"v": "2.1.0"}'

    def test_save_replaces(self, backend):
        backend.save("first")
        backend.save("second")
        assert backend.load() == "second"

    def test_keys_are_independent(self, backend):
        backend.save("a", "one")
        backend.save("b", "two")
        assert backend.load("one") == "a"
        assert backend.load("two") == "b"
        assert backend.load(STORAGE_KEY) is None

    def test_clear(self, backend):
        backend.save("blob")
        backend.clear()
        assert backend.load() is None

    def test_clear_missing_key_is_noop(self, backend):
        backend.clear("never-saved")


class TestFilePersistence:
    """On-disk layout and damaged files."""

    def test_document_layout(self, tmp_path):
        store = FilePersistence(str(tmp_path))
        store.save("blob")

        with open(tmp_path / f"{STORAGE_KEY}.json", encoding="utf-8") as f:
            assert json.load(f) == {"key": STORAGE_KEY, "blob": "blob"}

    def test_no_temp_files_left_behind(self, tmp_path):
        store = FilePersistence(str(tmp_path))
        store.save("one")
        store.save("two")
        assert os.listdir(tmp_path) == [f"{STORAGE_KEY}.json"]

    def test_survives_new_instance(self, tmp_path):
        FilePersistence(str(tmp_path)).save("blob")
        assert FilePersistence(str(tmp_path)).load() == "blob"

    @pytest.mark.parametrize("content", ["{broken", "[1, 2]", '{"blob": 3}', '{"key": "x"}'])
    def test_damaged_file_reads_as_empty(self, tmp_path, caplog, content):
        (tmp_path / f"{STORAGE_KEY}.json").write_text(content, encoding="utf-8")
        store = FilePersistence(str(tmp_path))

        with caplog.at_level(logging.WARNING, logger="tracker.storage"):
            assert store.load() is None
        assert "Ignoring" in caplog.text

    def test_initial_contents(self):
        store = InMemoryPersistence({STORAGE_KEY: "seeded"})
        assert store.load() == "seeded"
