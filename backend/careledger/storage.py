"""Keyed record stores: an in-memory map and an encrypted file-backed map."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Generic, List, Optional, Protocol, Tuple, Type, TypeVar

from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel

from .errors import StoreError

ModelT = TypeVar("ModelT", bound=BaseModel)


def _ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


class KeyedStore(Protocol[ModelT]):
    """Ordered key-value map consumed by the registries and the audit log.

    ``insert`` overwrites an existing key, ``remove`` of an absent key is a
    no-op and ``keys`` returns keys in ascending order. ``items`` pairs each
    key with its value (None if it vanished since listing).
    """

    def insert(self, key: str, value: ModelT) -> None: ...

    def get(self, key: str) -> Optional[ModelT]: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...

    def items(self) -> List[Tuple[str, Optional[ModelT]]]: ...


class InMemoryStore(Generic[ModelT]):
    """Dictionary-backed store. Values are copied on the way in and out."""

    def __init__(self) -> None:
        self._items: Dict[str, ModelT] = {}

    def insert(self, key: str, value: ModelT) -> None:
        self._items[key] = value.model_copy(deep=True)

    def get(self, key: str) -> Optional[ModelT]:
        value = self._items.get(key)
        return value.model_copy(deep=True) if value is not None else None

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._items)

    def items(self) -> List[Tuple[str, Optional[ModelT]]]:
        return [(key, self.get(key)) for key in self.keys()]

    def __len__(self) -> int:
        return len(self._items)


class Keyring:
    """Loads the store encryption key, generating it on first use."""

    def __init__(self, key_path: Path) -> None:
        self.key_path = key_path

    def get_key(self) -> bytes:
        try:
            if self.key_path.exists():
                return self.key_path.read_bytes().strip()
            _ensure_directory(self.key_path.parent)
            key = Fernet.generate_key()
            self.key_path.write_bytes(key)
            return key
        except OSError as error:
            raise StoreError(f"Keyring unavailable: {self.key_path}") from error


class EncryptedFileStore(Generic[ModelT]):
    """JSON file mapping each key to a Fernet token of the encoded record."""

    def __init__(self, path: Path, model: Type[ModelT], key: bytes) -> None:
        self.path = path
        self.model = model
        try:
            self._fernet = Fernet(key)
        except ValueError as error:
            raise StoreError("Invalid encryption key") from error
        try:
            _ensure_directory(self.path.parent)
            if not self.path.exists():
                self.path.write_text(json.dumps({}))
        except OSError as error:
            raise StoreError(f"Cannot initialise store at {self.path}") from error

    def _load(self) -> dict:
        try:
            return json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as error:
            raise StoreError(f"Cannot read store {self.path}") from error

    def _persist(self, data: dict) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True))
            tmp_path.replace(self.path)
        except OSError as error:
            raise StoreError(f"Cannot write store {self.path}") from error

    def _encode(self, value: ModelT) -> str:
        payload = value.model_dump_json().encode("utf-8")
        return self._fernet.encrypt(payload).decode("utf-8")

    def _decode(self, token: str) -> ModelT:
        try:
            decrypted = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as error:
            raise StoreError(f"Cannot decrypt record in {self.path}") from error
        return self.model.model_validate_json(decrypted)

    def insert(self, key: str, value: ModelT) -> None:
        data = self._load()
        data[key] = self._encode(value)
        self._persist(data)

    def get(self, key: str) -> Optional[ModelT]:
        token = self._load().get(key)
        if token is None:
            return None
        return self._decode(token)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._persist(data)

    def keys(self) -> List[str]:
        return sorted(self._load())

    def items(self) -> List[Tuple[str, ModelT]]:
        data = self._load()
        return [(key, self._decode(data[key])) for key in sorted(data)]
