import os
import pickle
import stat

import pytest

from diskstore_lib.errors import CorruptEntry, InvalidConfiguration, InvalidKey, StoreIOError
from diskstore_lib.mapping import DirectMapper, HashDistributedMapper
from diskstore_lib.storage import FileStore, JSONSerializer, SidecarMetadataStore, StoreProtocol, create_store
from diskstore_lib.util import TEMP_SUFFIX


@pytest.fixture(params=["direct", "hashed"])
def store(request, tmp_path):
    root = tmp_path / "file_cache"
    if request.param == "direct":
        return FileStore(root)
    return FileStore(mapper=HashDistributedMapper(root, levels=2))


def test_write_then_read(store):
    store.write("foo", "bar")
    assert store.read("foo") == "bar"
    store.write("doc", {"a": [1, 2, 3]})
    assert store.read("doc") == {"a": [1, 2, 3]}


def test_read_missing_returns_none(store):
    assert store.read("missing") is None


def test_exists_follows_write_delete_and_clear(store):
    assert store.exists("foo") is False
    store.write("foo", 1)
    assert store.exists("foo") is True
    assert "foo" in store
    store.delete("foo")
    assert store.exists("foo") is False
    store.write("foo", 1)
    store.clear()
    assert store.exists("foo") is False


def test_overwrite_replaces_value(store):
    store.write("foo", "old")
    store.write("foo", "new")
    assert store.read("foo") == "new"


def test_delete_returns_previous_value(store):
    store.write("foo", {"x": 1})
    assert store.delete("foo") == {"x": 1}
    assert store.read("foo") is None


def test_delete_missing_key_is_not_an_error(store):
    assert store.delete("never-written") is None


def test_clear_removes_everything_and_keeps_root(store):
    keys = [f"key-{i}" for i in range(20)]
    store.write_many({k: k.upper() for k in keys})
    store.clear()
    assert store.root.is_dir()
    assert list(store.root.iterdir()) == []
    assert not any(store.exists(k) for k in keys)


def test_keys_lists_stored_entries(store):
    store.write_many({"b": 2, "a": 1, "c": 3})
    assert sorted(store.keys()) == ["a", "b", "c"]
    store.delete("b")
    assert sorted(store.keys()) == ["a", "c"]


def test_write_leaves_no_temporary_files(tmp_path):
    s = FileStore(tmp_path)
    for i in range(5):
        s.write("foo", i)
    assert [p.name for p in tmp_path.iterdir()] == ["foo"]


def test_hashed_layout_on_disk(tmp_path):
    s = FileStore(mapper=HashDistributedMapper(tmp_path, levels=2))
    s.write("foo", "bar")
    files = [p for p in tmp_path.rglob("*") if p.is_file()]
    assert len(files) == 1
    rel = files[0].relative_to(tmp_path)
    assert rel.name == "foo"
    assert [len(part) for part in rel.parts[:-1]] == [2, 2]


def test_corrupt_content_is_reported(tmp_path):
    s = FileStore(tmp_path)
    (tmp_path / "foo").write_bytes(b"definitely not a pickle")
    assert s.exists("foo")
    with pytest.raises(CorruptEntry) as info:
        s.read("foo")
    assert info.value.key == "foo"


def test_delete_removes_corrupt_content(tmp_path):
    s = FileStore(tmp_path)
    (tmp_path / "foo").write_bytes(b"garbage")
    assert s.delete("foo") is None
    assert not s.exists("foo")


def test_foreign_serializer_content_is_corrupt(tmp_path):
    FileStore(tmp_path).write("foo", {1, 2})
    with pytest.raises(CorruptEntry):
        FileStore(tmp_path, serializer=JSONSerializer()).read("foo")


def test_write_onto_directory_raises_io_error(tmp_path):
    s = FileStore(tmp_path)
    (tmp_path / "taken").mkdir()
    with pytest.raises(StoreIOError):
        s.write("taken", 1)
    assert not any(p.name.endswith(TEMP_SUFFIX) for p in tmp_path.iterdir())


def test_invalid_keys(store):
    for key in ("", "..", "a/b"):
        with pytest.raises(InvalidKey):
            store.write(key, 1)
    with pytest.raises(InvalidKey):
        store.read(f".foo.abc{TEMP_SUFFIX}")


def test_sidecar_suffix_is_reserved(tmp_path):
    s = FileStore(tmp_path, metadata=SidecarMetadataStore())
    with pytest.raises(InvalidKey):
        s.write("foo.meta", 1)


def test_constructor_requires_root_or_mapper(tmp_path):
    with pytest.raises(InvalidConfiguration):
        FileStore()
    with pytest.raises(InvalidConfiguration):
        FileStore(tmp_path, mapper=DirectMapper(tmp_path))
    with pytest.raises(InvalidConfiguration):
        FileStore(mapper=object())


def test_custom_mapper(tmp_path):
    class PrefixMapper:
        def __init__(self, root):
            self.root = root

        def resolve(self, key):
            return self.root / f"entry-{key}"

        def clear(self):
            for p in self.root.iterdir():
                p.unlink()

    s = FileStore(mapper=PrefixMapper(tmp_path))
    s.write("foo", "bar")
    assert (tmp_path / "entry-foo").is_file()
    assert s.read("foo") == "bar"


def test_default_multi_key_operations(store):
    store.write_many({"a": 1, "b": 2})
    assert store.read_many(["a", "b", "missing"]) == {"a": 1, "b": 2}
    assert store.fetch("a") == 1
    assert store.fetch("missing", default=5) == 5
    assert store.fetch("missing", factory=lambda key: key * 2) == "missingmissing"
    assert store.exists("missing") is False
    assert store.delete_many(["a", "missing"]) == {"a": 1}
    assert store.read_many(["a", "b"]) == {"b": 2}


def test_create_store_factory(tmp_path):
    s = create_store(tmp_path / "hashed", mapper="hashed", levels=3, serializer="json", metadata="sidecar")
    assert isinstance(s.mapper, HashDistributedMapper)
    assert s.mapper.levels == 3
    assert isinstance(s.serializer, JSONSerializer)
    assert isinstance(s.expiration.metadata, SidecarMetadataStore)
    assert isinstance(s, StoreProtocol)

    enc = create_store(tmp_path / "enc", serializer="encrypted", password="pw", iterations=1000)
    enc.write("secret", {"foo": "bar"})
    assert b"\"mode\": \"password\"" in (tmp_path / "enc" / "secret").read_bytes()
    assert enc.read("secret") == {"foo": "bar"}


def test_long_key_can_be_written(tmp_path):
    s = FileStore(tmp_path)
    key = "k" * 240
    s.write(key, "v")
    assert s.read(key) == "v"
    s.write(key, "w")
    assert s.read(key) == "w"
    assert list(s.keys()) == [key]


def test_sidecar_store_rejects_keys_without_room_for_metadata(tmp_path):
    s = FileStore(tmp_path, metadata=SidecarMetadataStore())
    s.write("k" * 250, "v")
    with pytest.raises(InvalidKey):
        s.write("k" * 251, "v")


def test_written_files_follow_the_umask(tmp_path):
    mask = os.umask(0o022)
    try:
        FileStore(tmp_path).write("foo", "bar")
    finally:
        os.umask(mask)
    assert stat.S_IMODE((tmp_path / "foo").stat().st_mode) == 0o644


def test_delete_removes_orphaned_sidecar(tmp_path):
    s = FileStore(tmp_path, metadata=SidecarMetadataStore())
    (tmp_path / "foo.meta").write_bytes(pickle.dumps("stale"))

    assert s.delete("foo") is None
    assert not (tmp_path / "foo.meta").exists()
    s.write("foo", "bar")
    assert s.expiration.get("foo") is None
