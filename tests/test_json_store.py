"""Tests for JSON persistence helpers."""

import json

import pytest

from nailongwatch.errors import PersistenceFailure
from nailongwatch.storage.json_store import int_keyed, load_json_data, save_json_data, str_keyed


class TestLoadJsonData:

    def test_missing_file_is_created_with_default(self, tmp_path):
        path = tmp_path / "state" / "whitelist.json"

        assert load_json_data({}, path) == {}
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == {}

    def test_existing_file_is_read(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"1": true}', encoding="utf-8")

        assert load_json_data({}, path) == {"1": True}

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(PersistenceFailure):
            load_json_data({}, path)


class TestSaveJsonData:

    def test_non_ascii_is_written_verbatim(self, tmp_path):
        path = tmp_path / "data.json"

        save_json_data({"msg": "奶龙"}, path)

        assert "奶龙" in path.read_text(encoding="utf-8")

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "data.json"
        save_json_data({"a": 1}, path)
        save_json_data({"a": 2}, path)

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": 2}
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]

    def test_unwritable_target_raises(self, tmp_path):
        target = tmp_path / "taken"
        target.mkdir()

        with pytest.raises(PersistenceFailure):
            save_json_data({"a": 1}, target)

    def test_unserializable_value_raises(self, tmp_path):
        with pytest.raises(PersistenceFailure):
            save_json_data({"a": object()}, tmp_path / "data.json")
        assert not list(tmp_path.iterdir())


class TestKeyConversion:

    def test_round_trip(self):
        assert int_keyed(str_keyed({1: "a", 22: "b"})) == {1: "a", 22: "b"}

    def test_non_numeric_key_raises(self):
        with pytest.raises(PersistenceFailure):
            int_keyed({"abc": 1})

    def test_non_mapping_raises(self):
        with pytest.raises(PersistenceFailure):
            int_keyed([1, 2, 3])
