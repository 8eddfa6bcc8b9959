from datetime import datetime, timezone

import pytest
from cryptography.fernet import Fernet, InvalidToken

from diskstore_lib.errors import InvalidConfiguration
from diskstore_lib.storage.serializer import (
    EncryptedSerializer,
    JSONSerializer,
    PickleSerializer,
    YAMLSerializer,
    get_serializer,
)


@pytest.mark.parametrize("name,cls", [
    ("pickle", PickleSerializer),
    ("json", JSONSerializer),
    ("yaml", YAMLSerializer),
])
def test_named_serializers(name, cls):
    s = get_serializer(name)
    assert isinstance(s, cls)
    value = {"a": 1, "b": [1, 2, "three"]}
    data = s.dump(value)
    assert isinstance(data, bytes)
    assert s.load(data) == value


def test_pickle_keeps_python_types():
    s = PickleSerializer()
    when = datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert s.load(s.dump(when)) == when
    assert s.load(s.dump({1, 2})) == {1, 2}


def test_yaml_loads_safely():
    s = YAMLSerializer()
    with pytest.raises(Exception):
        s.load(b"!!python/object/apply:os.system ['true']")


def test_encrypted_password_mode_uses_fresh_salt():
    s = EncryptedSerializer(password="pw", iterations=1000)
    a, b = s.dump({"x": 1}), s.dump({"x": 1})
    assert a != b
    assert s.load(a) == {"x": 1}


def test_encrypted_key_mode():
    key = Fernet.generate_key()
    s = get_serializer("encrypted", key=key)
    assert s.load(s.dump(["secret"])) == ["secret"]
    with pytest.raises(InvalidToken):
        EncryptedSerializer(key=Fernet.generate_key()).load(s.dump(["secret"]))


def test_encrypted_wrong_password_fails():
    data = EncryptedSerializer(password="right", iterations=1000).dump("v")
    with pytest.raises(InvalidToken):
        EncryptedSerializer(password="wrong", iterations=1000).load(data)


def test_encrypted_mode_mismatch_is_reported():
    data = EncryptedSerializer(password="pw", iterations=1000).dump("v")
    with pytest.raises(ValueError):
        EncryptedSerializer(key=Fernet.generate_key()).load(data)


def test_encrypted_requires_a_secret():
    with pytest.raises(InvalidConfiguration):
        EncryptedSerializer()
    with pytest.raises(InvalidConfiguration):
        get_serializer("encrypted")


def test_unknown_serializer():
    with pytest.raises(InvalidConfiguration):
        get_serializer("marshal")
