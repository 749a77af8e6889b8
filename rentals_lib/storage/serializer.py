from typing import Any, Protocol
import json
import yaml


class Serializer(Protocol):
    """Serialize/deserialize collection blobs for backends that store text.

    Implementations should be symmetric: `dump` -> str, `load` <- str.
    """

    file_extension: str

    def dump(self, value: Any) -> str: ...

    def load(self, data: str) -> Any: ...


class JSONSerializer:
    """Default serializer using JSON (text). Caller must ensure values are JSON-serializable.

    Key order of mappings is preserved, which keeps the insertion order of
    records inside a collection blob stable across round-trips.
    """

    file_extension = ".json"

    def dump(self, value: Any) -> str:
        return json.dumps(value, default=lambda o: o.__dict__)

    def load(self, data: str) -> Any:
        return json.loads(data)


class YAMLSerializer:
    """Serializer using YAML (text). Caller must ensure values are YAML-serializable."""

    file_extension = ".yml"

    def dump(self, value: Any) -> str:
        return yaml.safe_dump(value, sort_keys=False)

    def load(self, data: str) -> Any:
        return yaml.safe_load(data)


class EncryptedSerializer:
        """Serializer that encrypts payloads using Fernet (symmetric, authenticated).

        Notes:
        - Fernet is an authenticated symmetric cipher from the cryptography
            library; a tampered or foreign blob fails to decrypt and is reported
            as a load error.
        - `base_serializer` defaults to JSON and is set inside `__init__`.
        - For passphrase-derived keys pass `password`; each payload then
            carries its own random salt and KDF parameters.
        """

        file_extension = ".enc"

        def __init__(
            self,
            *,
            key: bytes | None = None,
            password: str | None = None,
            iterations: int = 390000,
            base_serializer: Serializer | None = None,
        ) -> None:
            """Create an EncryptedSerializer.

            Provide either `key` (a Fernet key) or `password` (a passphrase).
            """
            if key is None and password is None:
                raise ValueError("EncryptedSerializer requires either `key` or `password`")
            self._key = key
            self._password = password
            self._iterations = iterations
            self.base_serializer = base_serializer or JSONSerializer()

        def _derive_key(self, password: str, salt: bytes, iterations: int) -> bytes:
            import base64
            from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
            from cryptography.hazmat.primitives import hashes

            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=salt,
                iterations=iterations,
            )
            return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))

        def dump(self, value: Any) -> str:
            """Serialize and encrypt value, returning a framed JSON text blob."""
            import os
            import base64
            from cryptography.fernet import Fernet
            inner = self.base_serializer.dump(value).encode("utf-8")

            if self._password is not None:
                salt = os.urandom(16)
                key = self._derive_key(self._password, salt, self._iterations)
                ct = Fernet(key).encrypt(inner)
                frame = {
                    "v": 1,
                    "mode": "password",
                    "kdf": "pbkdf2",
                    "iterations": self._iterations,
                    "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
                    "ct": ct.decode("ascii"),
                }
                return json.dumps(frame)

            ct = Fernet(self._key).encrypt(inner)
            return json.dumps({"v": 1, "mode": "key", "ct": ct.decode("ascii")})

        def load(self, data: str) -> Any:
            """Parse framed blob, derive key if needed, decrypt and deserialize."""
            import base64
            from cryptography.fernet import Fernet

            frame = json.loads(data)
            if not isinstance(frame, dict):
                raise ValueError("unknown frame format")
            mode = frame.get("mode")
            if mode == "password":
                if self._password is None:
                    raise ValueError("serializer was not configured with a password")
                salt = base64.urlsafe_b64decode(frame["salt"].encode("ascii"))
                iterations = frame.get("iterations", self._iterations)
                key = self._derive_key(self._password, salt, iterations)
            elif mode == "key":
                if self._key is None:
                    raise ValueError("serializer was not configured with a key")
                key = self._key
            else:
                raise ValueError("unknown frame format")
            pt = Fernet(key).decrypt(frame["ct"].encode("ascii"))
            return self.base_serializer.load(pt.decode("utf-8"))


def get_serializer(name: str = "json", **options) -> Serializer:
    """Return a serializer instance by name ('json', 'yaml' or 'encrypted')."""
    name = (name or "json").lower()
    if name == "json":
        return JSONSerializer()
    if name in ("yaml", "yml"):
        return YAMLSerializer()
    if name == "encrypted":
        return EncryptedSerializer(
            key=options.get("key"),
            password=options.get("password"),
        )
    raise ValueError(f"Unknown serializer: {name}")
