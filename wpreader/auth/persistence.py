"""File-backed collection store with read-modify-write persistence.

Each collection lives in a single JSON document::

    {"<collection>": {"<key>": {...record...}}, "lastUpdated": 1718000000.0}

Every mutation re-reads the whole document, drops expired records, applies
the change and rewrites the whole document. Readers never see expired
records, whether or not a sweep has removed them from disk yet.
"""

import asyncio
import json
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import ValidationError

from wpreader.auth.storage import ExpiringRecord
from wpreader.core.constants import LAST_UPDATED_KEY
from wpreader.core.exceptions import FileWriteError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ExpiringRecord)
ResultT = TypeVar("ResultT")


class JsonCollectionStore(Generic[RecordT]):
    """Durable mapping of key -> record kept in one JSON file."""

    def __init__(
        self,
        path: str | Path,
        model: type[RecordT],
        collection: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(path)
        self._model = model
        self._collection = collection
        self._clock = clock
        # Serializes read-modify-write cycles within this process
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ========== File I/O ==========

    def _read_document(self) -> dict[str, RecordT]:
        """Read every record on disk, expired or not.

        Unreadable documents are logged and treated as empty so that a
        corrupt file forces re-authentication instead of crashing.
        """
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                "Failed to read %s, treating it as empty: %s", self._path, e
            )
            return {}

        entries = raw.get(self._collection) if isinstance(raw, dict) else None
        if not isinstance(entries, dict):
            logger.warning(
                "%s has no '%s' collection, treating it as empty",
                self._path,
                self._collection,
            )
            return {}

        records: dict[str, RecordT] = {}
        for key, value in entries.items():
            try:
                records[key] = self._model.model_validate(value)
            except ValidationError as e:
                logger.warning("Dropping unreadable record in %s: %s", self._path, e)
        return records

    def _write_document(self, records: dict[str, RecordT]) -> None:
        document = {
            self._collection: {
                key: record.model_dump(mode="json") for key, record in records.items()
            },
            LAST_UPDATED_KEY: self._clock(),
        }
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error("Failed to write %s: %s", self._path, e)
            msg = f"Could not persist {self._collection}"
            raise FileWriteError(msg) from e

    def _live(self, records: dict[str, RecordT]) -> dict[str, RecordT]:
        now = self._clock()
        return {key: r for key, r in records.items() if not r.is_expired(now)}

    # ========== Reads ==========

    async def load(self) -> dict[str, RecordT]:
        """Return all non-expired records."""
        records = await asyncio.to_thread(self._read_document)
        return self._live(records)

    async def get(self, key: str) -> RecordT | None:
        return (await self.load()).get(key)

    async def values(self) -> list[RecordT]:
        return list((await self.load()).values())

    # ========== Mutations ==========

    async def _mutate(self, mutation: Callable[[dict[str, RecordT]], ResultT]) -> ResultT:
        async with self._lock:
            records = self._live(await asyncio.to_thread(self._read_document))
            result = mutation(records)
            await asyncio.to_thread(self._write_document, records)
            return result

    async def put(self, key: str, record: RecordT) -> None:
        def _put(records: dict[str, RecordT]) -> None:
            records[key] = record

        await self._mutate(_put)

    async def delete(self, key: str) -> bool:
        """Remove a record. Returns False if it was absent or already expired."""

        def _delete(records: dict[str, RecordT]) -> bool:
            return records.pop(key, None) is not None

        return await self._mutate(_delete)

    async def sweep(self) -> int:
        """Physically remove expired records. Returns how many were removed."""
        async with self._lock:
            records = await asyncio.to_thread(self._read_document)
            live = self._live(records)
            removed = len(records) - len(live)
            if removed:
                await asyncio.to_thread(self._write_document, live)
                logger.debug("Swept %d expired record(s) from %s", removed, self._path)
            return removed
