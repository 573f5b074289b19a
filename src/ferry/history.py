"""Upload history: an append-only record of every upload attempt."""

import json
import logging
from pathlib import Path
from typing import Protocol

from ferry.models import UploadedFileRecord

logger = logging.getLogger(__name__)


class HistorySink(Protocol):
    def append(self, records: list[UploadedFileRecord]) -> list[UploadedFileRecord]: ...


class MemoryHistory:
    """History kept in process memory, newest first."""

    def __init__(self, records: list[UploadedFileRecord] | None = None):
        self.records: list[UploadedFileRecord] = list(records or [])

    def get(self) -> list[UploadedFileRecord]:
        return list(self.records)

    def append(self, records: list[UploadedFileRecord]) -> list[UploadedFileRecord]:
        self.records = [*records, *self.records]
        return self.get()

    def clear(self, ids: list[str] | None = None) -> list[UploadedFileRecord]:
        """Remove the given ids, or everything when no ids are given."""
        if ids is None:
            self.records = []
        else:
            drop = set(ids)
            self.records = [r for r in self.records if r.id not in drop]
        return self.get()


class JsonHistory(MemoryHistory):
    """History persisted to a JSON file after every change."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> list[UploadedFileRecord]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return [UploadedFileRecord.model_validate(item) for item in data]

    def _save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(
                [r.model_dump(mode="json") for r in self.records],
                f,
                ensure_ascii=False,
                indent=2,
            )

    def append(self, records: list[UploadedFileRecord]) -> list[UploadedFileRecord]:
        updated = super().append(records)
        self._save()
        logger.debug("Appended %d records to %s", len(records), self.path)
        return updated

    def clear(self, ids: list[str] | None = None) -> list[UploadedFileRecord]:
        updated = super().clear(ids)
        self._save()
        return updated
