"""Unit tests for powcap/storage/persistence.py."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from powcap.config.settings import Settings
from powcap.exceptions import PersistenceError
from powcap.storage.persistence import (
    JsonFileTokenPersistence,
    NullTokenPersistence,
    create_token_persistence,
)


@pytest.mark.unit
class TestJsonFileTokenPersistence:
    def test_missing_file_is_created_empty(self, tmp_path: Path) -> None:
        path = tmp_path / ".data" / "tokensList.json"
        backend = JsonFileTokenPersistence(path)
        assert backend.load() == {}
        assert path.exists()
        assert json.loads(path.read_text()) == {}

    def test_save_then_load(self, tmp_path: Path) -> None:
        backend = JsonFileTokenPersistence(tmp_path / "tokens.json")
        tokens = {"abcd:ef01": 1_700_000_000_000, "1234:5678": 1_800_000_000_000}
        backend.save(tokens)
        assert backend.load() == tokens

    def test_save_leaves_no_temp_file(self, tmp_path: Path) -> None:
        backend = JsonFileTokenPersistence(tmp_path / "tokens.json")
        backend.save({"a:b": 1})
        assert [p.name for p in tmp_path.iterdir()] == ["tokens.json"]

    def test_save_overwrites_wholesale(self, tmp_path: Path) -> None:
        path = tmp_path / "tokens.json"
        backend = JsonFileTokenPersistence(path)
        backend.save({"a:b": 1, "c:d": 2})
        backend.save({"c:d": 2})
        assert json.loads(path.read_text()) == {"c:d": 2}

    def test_corrupt_file_loads_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "tokens.json"
        path.write_text("{not json")
        assert JsonFileTokenPersistence(path).load() == {}

    @pytest.mark.parametrize(
        "content",
        ['["a", "b"]', '{"a:b": "soon"}', '{"a:b": true}', '{"a:b": 1.5}', "null"],
    )
    def test_wrong_shape_loads_empty(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "tokens.json"
        path.write_text(content)
        assert JsonFileTokenPersistence(path).load() == {}

    def test_save_failure_raises(self, tmp_path: Path) -> None:
        backend = JsonFileTokenPersistence(tmp_path / "missing-dir" / "tokens.json")
        with pytest.raises(PersistenceError):
            backend.save({"a:b": 1})


@pytest.mark.unit
class TestNullTokenPersistence:
    def test_load_empty_and_save_noop(self) -> None:
        backend = NullTokenPersistence()
        backend.save({"a:b": 1})
        assert backend.load() == {}


@pytest.mark.unit
class TestCreateTokenPersistence:
    def test_file_backend_by_default(self, tmp_path: Path) -> None:
        settings = Settings(tokens_store_path=str(tmp_path / "t.json"))
        backend = create_token_persistence(settings)
        assert isinstance(backend, JsonFileTokenPersistence)
        assert backend.path == tmp_path / "t.json"

    def test_null_backend_when_disabled(self) -> None:
        backend = create_token_persistence(Settings(no_fs_state=True))
        assert isinstance(backend, NullTokenPersistence)
