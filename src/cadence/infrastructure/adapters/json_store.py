"""
JSON File Progress Repository — Infrastructure adapter for a local JSON document.

Implements ProgressRepository on top of a single file:

    {"version": 1, "records": [ {...}, ... ]}

The whole document is rewritten on every save through a temporary file
and an atomic replace, so a crash never leaves a half-written store.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from cadence.domain.exceptions import StoreError
from cadence.domain.models import ProgressKey, ProgressRecord
from cadence.domain.ports import ProgressRepository
from cadence.infrastructure.serialization import record_from_dict, record_to_dict

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class JsonFileProgressRepository(ProgressRepository):
    """
    Stores every progress record in one JSON file.

    Suitable for a single local learner; not safe for concurrent writers.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> dict[ProgressKey, ProgressRecord]:
        if not self.path.exists():
            return {}

        try:
            document: Any = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Progress store {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StoreError(f"Could not read progress store {self.path}: {e}") from e

        raw_records = document.get("records", []) if isinstance(document, dict) else None
        if not isinstance(raw_records, list):
            raise StoreError(f"Progress store {self.path} is not a progress document")

        records: dict[ProgressKey, ProgressRecord] = {}
        for raw in raw_records:
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed progress record in {self.path}: {raw!r}")
                continue
            try:
                record = record_from_dict(raw)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed progress record in {self.path}: {e}")
                continue
            records[record.key] = record
        return records

    def _write(self, records: dict[ProgressKey, ProgressRecord]) -> None:
        document = {
            "version": STORE_VERSION,
            "records": [record_to_dict(r) for r in records.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StoreError(f"Could not write progress store {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Could not write progress store {self.path}: {e}") from e

    async def get(self, key: ProgressKey) -> ProgressRecord | None:
        return self._read().get(key)

    async def save(self, record: ProgressRecord) -> None:
        records = self._read()
        records[record.key] = record
        self._write(records)
        logger.debug(f"Saved {record.id} to {self.path}")

    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        return [r for r in self._read().values() if r.user_id == user_id]
