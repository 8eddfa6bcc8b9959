"""Value serializers used by the file store and the expiration store.

Serializers are the opaque "value -> bytes -> value" capability of the
store. Any object with symmetric `dump`/`load` methods can be plugged in;
the built-in ones are selectable by name through `get_serializer`.
"""
from __future__ import annotations
import base64
import json
import os
import pickle
from typing import Any, Protocol

import yaml
from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from diskstore_lib.errors import InvalidConfiguration


class Serializer(Protocol):
    """Serialize/deserialize Python values to the bytes written on disk.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    `load` raises on foreign or damaged input; the store reports that as
    `CorruptEntry`.
    """

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class PickleSerializer:
    """Default serializer using pickle (binary).

    Stored values and expiration tokens may be arbitrary Python objects
    (datetimes are common tokens), which only pickle round-trips faithfully.
    """

    name = "pickle"

    def dump(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)

    def load(self, data: bytes) -> Any:
        return pickle.loads(data)


class JSONSerializer:
    """Serializer using JSON (text). Caller must ensure values are JSON-serializable."""

    name = "json"

    def dump(self, value: Any) -> bytes:
        return json.dumps(value).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class YAMLSerializer:
    """Serializer using YAML (text), loaded with `yaml.safe_load`."""

    name = "yaml"

    def dump(self, value: Any) -> bytes:
        return yaml.safe_dump(value).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return yaml.safe_load(data.decode("utf-8"))


class EncryptedSerializer:
    """Serializer that encrypts payloads using Fernet (symmetric, authenticated).

    Provide either `key` (a Fernet key) or `password`. In password mode each
    payload carries its own random salt and the PBKDF2 iteration count so
    the key can be derived again on load. The plaintext is produced by
    `base_serializer` (pickle unless given).
    """

    name = "encrypted"

    def __init__(
        self,
        *,
        key: bytes | None = None,
        password: str | None = None,
        iterations: int = 390000,
        base_serializer: Serializer | None = None,
    ) -> None:
        if key is None and password is None:
            raise InvalidConfiguration("EncryptedSerializer requires either `key` or `password`")
        self._key = key
        self._password = password
        self._iterations = iterations
        self.base_serializer = base_serializer or PickleSerializer()

    @staticmethod
    def _derive_key(password: str, salt: bytes, iterations: int) -> bytes:
        kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)
        return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))

    def dump(self, value: Any) -> bytes:
        inner = self.base_serializer.dump(value)
        if self._password is not None:
            salt = os.urandom(16)
            fernet = Fernet(self._derive_key(self._password, salt, self._iterations))
            frame = {
                "v": 1,
                "mode": "password",
                "kdf": "pbkdf2",
                "iterations": self._iterations,
                "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
            }
        else:
            fernet = Fernet(self._key)
            frame = {"v": 1, "mode": "key"}
        frame["ct"] = base64.urlsafe_b64encode(fernet.encrypt(inner)).decode("ascii")
        return json.dumps(frame).encode("utf-8")

    def load(self, data: bytes) -> Any:
        frame = json.loads(data.decode("utf-8"))
        mode = frame.get("mode")
        if mode == "password":
            if self._password is None:
                raise ValueError("serializer was not configured with a password")
            salt = base64.urlsafe_b64decode(frame["salt"].encode("ascii"))
            iterations = frame.get("iterations", self._iterations)
            fernet = Fernet(self._derive_key(self._password, salt, iterations))
        elif mode == "key":
            if self._key is None:
                raise ValueError("serializer was not configured with a key")
            fernet = Fernet(self._key)
        else:
            raise ValueError("unknown frame format")
        ct = base64.urlsafe_b64decode(frame["ct"].encode("ascii"))
        return self.base_serializer.load(fernet.decrypt(ct))


_SERIALIZERS = {
    "pickle": PickleSerializer,
    "json": JSONSerializer,
    "yaml": YAMLSerializer,
}


def get_serializer(name: str = "pickle", **options: Any) -> Serializer:
    """Return a serializer instance by name.

    ``encrypted`` accepts the `EncryptedSerializer` keyword options
    (`key`, `password`, `iterations`); the other names take none.
    """
    if name == "encrypted":
        return EncryptedSerializer(**options)
    try:
        cls = _SERIALIZERS[name]
    except KeyError:
        known = sorted([*_SERIALIZERS, "encrypted"])
        raise InvalidConfiguration(f"Unknown serializer {name!r}; expected one of {known}") from None
    return cls()
