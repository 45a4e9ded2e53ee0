"""Tests for pkg_manager.store."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pkg_manager.errors import CorruptStoreError
from pkg_manager.models import HashStore, PackageHashRecord
from pkg_manager.store import (
    is_duplicate,
    load_store,
    parse_store,
    persist_store,
    record_publish,
)

HASH_A = "a" * 64
HASH_B = "b" * 64


@pytest.fixture
def sample_store() -> HashStore:
    """A store with two published versions of one package."""
    return HashStore(
        packages={
            "pkg-a": PackageHashRecord(
                versions={"1.0.0": HASH_A, "1.0.1": HASH_B}, last_version="1.0.1"
            )
        }
    )


class TestParseStore:
    def test_parses_valid_content(self) -> None:
        content = json.dumps(
            {
                "packages": {
                    "pkg": {"versions": {"1.0.0": HASH_A}, "lastVersion": "1.0.0"}
                }
            }
        )
        store = parse_store(content)
        assert store.packages["pkg"].versions == {"1.0.0": HASH_A}
        assert store.packages["pkg"].last_version == "1.0.0"

    def test_last_version_is_optional(self) -> None:
        store = parse_store('{"packages": {"pkg": {"versions": {}}}}')
        assert store.packages["pkg"].last_version is None

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(CorruptStoreError):
            parse_store("{not json")

    def test_wrong_shape_raises(self) -> None:
        with pytest.raises(CorruptStoreError):
            parse_store('{"packages": {"pkg": {"versions": ["1.0.0"]}}}')

    def test_non_object_raises(self) -> None:
        with pytest.raises(CorruptStoreError):
            parse_store("[]")


class TestLoadStore:
    def test_missing_file_is_empty_store(self, tmp_path: Path) -> None:
        store = load_store(tmp_path / "missing" / "hashes.json")
        assert store == HashStore()

    @patch("pkg_manager.store.warn")
    def test_corrupt_file_is_empty_store(
        self, mock_warn: MagicMock, tmp_path: Path
    ) -> None:
        path = tmp_path / "hashes.json"
        path.write_text("{{{ definitely not json")

        store = load_store(path)

        assert store == HashStore()
        mock_warn.assert_called_once()

    @patch("pkg_manager.store.warn")
    def test_schema_mismatch_is_empty_store(
        self, mock_warn: MagicMock, tmp_path: Path
    ) -> None:
        path = tmp_path / "hashes.json"
        path.write_text('{"packages": "nope"}')

        assert load_store(path) == HashStore()

    @patch("pkg_manager.store.warn")
    def test_undecodable_bytes_is_empty_store(
        self, mock_warn: MagicMock, tmp_path: Path
    ) -> None:
        path = tmp_path / "hashes.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        assert load_store(path) == HashStore()

    def test_round_trips_through_disk(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / "hashes.json"
        persist_store(sample_store, path)
        assert load_store(path) == sample_store


class TestPersistStore:
    def test_creates_parent_directories(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / ".pkg-manager" / "nested" / "hashes.json"
        persist_store(sample_store, path)
        assert path.exists()

    def test_writes_documented_schema(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / "hashes.json"
        persist_store(sample_store, path)

        data = json.loads(path.read_text())

        assert data == {
            "packages": {
                "pkg-a": {
                    "versions": {"1.0.0": HASH_A, "1.0.1": HASH_B},
                    "lastVersion": "1.0.1",
                }
            }
        }

    def test_trailing_newline_and_indent(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / "hashes.json"
        persist_store(sample_store, path)

        content = path.read_text()

        assert content.endswith("}\n")
        assert '\n  "packages": {' in content

    def test_omits_missing_last_version(self, tmp_path: Path) -> None:
        path = tmp_path / "hashes.json"
        store = HashStore(packages={"pkg": PackageHashRecord(versions={})})
        persist_store(store, path)

        assert "lastVersion" not in path.read_text()

    def test_overwrites_existing_file(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / "hashes.json"
        path.write_text("old garbage")
        persist_store(sample_store, path)

        assert load_store(path) == sample_store

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_new_file_is_world_readable(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / "hashes.json"
        persist_store(sample_store, path)

        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_keeps_existing_file_mode(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / "hashes.json"
        path.write_text("{}")
        path.chmod(0o664)

        persist_store(sample_store, path)

        assert stat.S_IMODE(path.stat().st_mode) == 0o664

    def test_leaves_no_temp_files(
        self, tmp_path: Path, sample_store: HashStore
    ) -> None:
        path = tmp_path / "hashes.json"
        persist_store(sample_store, path)
        persist_store(sample_store, path)

        assert [p.name for p in tmp_path.iterdir()] == ["hashes.json"]


class TestIsDuplicate:
    def test_unknown_package_is_not_duplicate(self, sample_store: HashStore) -> None:
        result = is_duplicate(sample_store, "other", HASH_A)
        assert result.is_duplicate is False
        assert result.existing_version is None

    def test_matching_hash_reports_version(self, sample_store: HashStore) -> None:
        result = is_duplicate(sample_store, "pkg-a", HASH_B)
        assert result.is_duplicate is True
        assert result.existing_version == "1.0.1"

    def test_new_hash_is_not_duplicate(self, sample_store: HashStore) -> None:
        result = is_duplicate(sample_store, "pkg-a", "c" * 64)
        assert result.is_duplicate is False

    def test_empty_store(self) -> None:
        assert is_duplicate(HashStore(), "pkg-a", HASH_A).is_duplicate is False

    def test_shared_hash_reports_first_recorded_version(self) -> None:
        store = HashStore(
            packages={
                "pkg": PackageHashRecord(versions={"2.0.0": HASH_A, "1.0.0": HASH_A})
            }
        )
        assert is_duplicate(store, "pkg", HASH_A).existing_version == "2.0.0"

    def test_overwritten_version_keeps_first_position(self) -> None:
        store = record_publish(HashStore(), "pkg", "1.0.0", HASH_B)
        store = record_publish(store, "pkg", "2.0.0", HASH_A)
        store = record_publish(store, "pkg", "1.0.0", HASH_A)
        assert is_duplicate(store, "pkg", HASH_A).existing_version == "1.0.0"

    def test_hash_of_other_package_is_not_duplicate(
        self, sample_store: HashStore
    ) -> None:
        store = record_publish(sample_store, "pkg-b", "0.1.0", "d" * 64)
        assert is_duplicate(store, "pkg-a", "d" * 64).is_duplicate is False


class TestRecordPublish:
    def test_creates_package_record(self) -> None:
        store = record_publish(HashStore(), "pkg", "1.0.0", HASH_A)
        assert store.packages["pkg"].versions == {"1.0.0": HASH_A}
        assert store.packages["pkg"].last_version == "1.0.0"

    def test_adds_version_and_updates_last_version(
        self, sample_store: HashStore
    ) -> None:
        store = record_publish(sample_store, "pkg-a", "1.1.0", "c" * 64)
        record = store.packages["pkg-a"]
        assert record.versions == {"1.0.0": HASH_A, "1.0.1": HASH_B, "1.1.0": "c" * 64}
        assert record.last_version == "1.1.0"

    def test_overwrites_same_version(self, sample_store: HashStore) -> None:
        store = record_publish(sample_store, "pkg-a", "1.0.0", "c" * 64)
        assert store.packages["pkg-a"].versions["1.0.0"] == "c" * 64
        assert store.packages["pkg-a"].last_version == "1.0.0"

    def test_does_not_mutate_input(self, sample_store: HashStore) -> None:
        before = sample_store.model_copy(deep=True)
        record_publish(sample_store, "pkg-a", "9.9.9", "c" * 64)
        record_publish(sample_store, "new-pkg", "0.1.0", "c" * 64)
        assert sample_store == before

    def test_then_is_duplicate_reports_recorded_version(self) -> None:
        store = record_publish(HashStore(), "pkg", "3.1.4", HASH_A)
        result = is_duplicate(store, "pkg", HASH_A)
        assert result.is_duplicate is True
        assert result.existing_version == "3.1.4"
