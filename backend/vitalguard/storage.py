"""
Key/value storage for the in-process stores (identities, consents, audit trail).

Each namespaced key holds a JSON array of records. ``InMemoryStorage`` backs
the tests; ``JsonFileStorage`` keeps the same layout in a single file on disk.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

USERS_KEY = "vitalguard_demo_users"
CONSENTS_KEY = "vitalguard_consents"
AUDIT_KEY = "vitalguard_audit"
PROOFS_KEY = "vitalguard_proofs"


class KeyValueStorage(ABC):
    @abstractmethod
    def load(self, key: str) -> list[dict]:
        ...

    @abstractmethod
    def save(self, key: str, records: list[dict]) -> None:
        ...


class InMemoryStorage(KeyValueStorage):
    def __init__(self):
        self._data: dict[str, str] = {}

    def load(self, key: str) -> list[dict]:
        raw = self._data.get(key)
        if not raw:
            return []
        return json.loads(raw)

    def save(self, key: str, records: list[dict]) -> None:
        self._data[key] = json.dumps(records)


class JsonFileStorage(KeyValueStorage):
    """All keys in one JSON object on disk, rewritten atomically on every save."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read_all(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.warning("Storage file %s is corrupt (%s); starting empty", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, key: str) -> list[dict]:
        records = self._read_all().get(key, [])
        return records if isinstance(records, list) else []

    def save(self, key: str, records: list[dict]) -> None:
        data = self._read_all()
        data[key] = records
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)


def build_storage(path: str) -> KeyValueStorage:
    if path:
        return JsonFileStorage(path)
    return InMemoryStorage()
