import json
from logging import Logger
import os
from pathlib import Path
import tempfile

import pydantic

from core.exceptions import BackendError, ParseError
from core.logger import app_logger
from model.dto.tables import LegacyPayloadDTO


class LocalPayloadCache:
    """File backed key-value store holding the legacy payload of the offline table."""

    def __init__(self, path: str, key: str, logger: Logger = app_logger):
        self._path = Path(path)
        self._key = key
        self._logger = logger

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> LegacyPayloadDTO | None:
        entries = self._read()
        if self._key not in entries:
            return None

        try:
            return LegacyPayloadDTO.model_validate(entries[self._key])
        except pydantic.ValidationError as exc:
            raise ParseError(
                f"Corrupt payload under `{self._key}`: {exc.errors()[0]['msg']}"
            )

    def save(self, payload: LegacyPayloadDTO) -> None:
        entries = self._read()
        entries[self._key] = payload.model_dump(mode="json")
        self._write(entries)
        self._logger.debug(f"Cached payload `{payload.name}` under `{self._key}`")

    def clear(self) -> None:
        entries = self._read()
        if entries.pop(self._key, None) is not None:
            self._write(entries)

    def _read(self) -> dict:
        if not self._path.exists():
            return {}

        try:
            entries = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            raise ParseError(f"Corrupt cache file {self._path}: {exc}")
        except OSError as exc:
            raise BackendError(f"Cannot read cache file {self._path}: {exc}")

        if not isinstance(entries, dict):
            raise ParseError(f"Corrupt cache file {self._path}: expected an object")
        return entries

    def _write(self, entries: dict) -> None:
        directory = self._path.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # atomic replace
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle, indent=2)
            os.replace(tmp_path, self._path)
            tmp_path = None
        except OSError as exc:
            raise BackendError(f"Cannot write cache file {self._path}: {exc}")
        finally:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
