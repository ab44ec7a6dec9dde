from simpleredis.backend import Backend
from simpleredis.frames import BulkString, SimpleString


def test_get_missing_key_is_none():
    backend = Backend()
    assert backend.get("absent") is None


def test_set_then_get_round_trip():
    backend = Backend()
    backend.set("hello", BulkString(b"world"))
    assert backend.get("hello") == BulkString(b"world")


def test_set_overwrites():
    backend = Backend()
    backend.set("k", BulkString(b"one"))
    backend.set("k", SimpleString("two"))
    assert backend.get("k") == SimpleString("two")


def test_hget_missing_key_and_field():
    backend = Backend()
    assert backend.hget("map", "hello") is None
    backend.hset("map", "other", BulkString(b"x"))
    assert backend.hget("map", "hello") is None


def test_hset_then_hget():
    backend = Backend()
    backend.hset("map", "hello", BulkString(b"world"))
    assert backend.hget("map", "hello") == BulkString(b"world")


def test_hgetall_returns_all_fields():
    backend = Backend()
    backend.hset("map", "hello", BulkString(b"world"))
    backend.hset("map", "hello1", BulkString(b"world1"))
    assert backend.hgetall("map") == {
        "hello": BulkString(b"world"),
        "hello1": BulkString(b"world1"),
    }


def test_hgetall_missing_is_none():
    assert Backend().hgetall("map") is None


def test_hgetall_returns_copy():
    backend = Backend()
    backend.hset("map", "hello", BulkString(b"world"))
    snapshot = backend.hgetall("map")
    snapshot["extra"] = BulkString(b"x")
    assert backend.hget("map", "extra") is None
    assert len(backend.hgetall("map")) == 1


def test_plain_and_hash_namespaces_are_separate():
    backend = Backend()
    backend.set("same", BulkString(b"plain"))
    backend.hset("same", "field", BulkString(b"hashed"))
    assert backend.get("same") == BulkString(b"plain")
    assert backend.hget("same", "field") == BulkString(b"hashed")