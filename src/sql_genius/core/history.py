"""
core/history.py

Uploaded-schema history, persisted on the local device.

What it provides:
- UploadedFile: {name, content}; `name` is the unique key
- HistoryStore port (load/save) with an in-memory and a JSON-file implementation
- read_upload(): turn an uploaded .sql/.txt file into an UploadedFile
- SchemaHistory: the history list plus the active schema text / active-file marker

Notes:
- The JSON file is the single persisted entry: a list of {"name", "content"}
  objects, no versioning, no migration.
- Mutations reload the list from the store before saving; there is no locking.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from sql_genius.core.validate import ValidationError


logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".sql", ".txt")
UPLOAD_ERROR_MESSAGE = "There was an issue uploading your file."


@dataclass(frozen=True)
class UploadedFile:
    name: str
    content: str


class HistoryStore(Protocol):
    def load(self) -> List[UploadedFile]: ...

    def save(self, files: List[UploadedFile]) -> None: ...


class InMemoryHistoryStore:
    """Store that lives only as long as the object; used by tests."""

    def __init__(self, files: Optional[List[UploadedFile]] = None):
        self._files = list(files or [])

    def load(self) -> List[UploadedFile]:
        return list(self._files)

    def save(self, files: List[UploadedFile]) -> None:
        self._files = list(files)


class JsonFileHistoryStore:
    """Store backed by one JSON file on the local device."""

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def load(self) -> List[UploadedFile]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return [UploadedFile(name=str(f["name"]), content=str(f["content"])) for f in raw]
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Ignoring unreadable schema history at %s: %s", self.path, e)
            return []

    def save(self, files: List[UploadedFile]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps([asdict(f) for f in files], indent=2), encoding="utf-8")
        logger.debug("Saved %d schema file(s) to %s", len(files), self.path)


def read_upload(name: str, data: bytes) -> UploadedFile:
    """
    Build an UploadedFile from raw upload bytes.

    Only .sql and .txt files are accepted, read as UTF-8 plain text.
    """
    if not name or not name.lower().endswith(ALLOWED_EXTENSIONS):
        raise ValidationError(f"{UPLOAD_ERROR_MESSAGE} Only .sql and .txt files are supported.")
    try:
        content = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError(UPLOAD_ERROR_MESSAGE) from e
    return UploadedFile(name=name, content=content)


class SchemaHistory:
    """
    History list plus the currently active schema.

    The store may be shared by several sessions (browser tabs). Every mutation
    reloads the list from the store first, so one session's save never drops
    entries written by another. The active schema is per instance.
    """

    def __init__(self, store: HistoryStore):
        self.store = store
        self.files: List[UploadedFile] = store.load()
        self.active_name: Optional[str] = None
        self.schema_text: str = ""

    def reload(self) -> List[UploadedFile]:
        self.files = self.store.load()
        return self.files

    def names(self) -> List[str]:
        return [f.name for f in self.files]

    def get(self, name: str) -> UploadedFile:
        for f in self.reload():
            if f.name == name:
                return f
        raise KeyError(name)

    def upload(self, file: UploadedFile) -> None:
        """Add or overwrite (same name) a file, persist, and make it the active schema."""
        files = self.reload()
        for i, existing in enumerate(files):
            if existing.name == file.name:
                files[i] = file
                break
        else:
            files.append(file)
        self.store.save(files)
        self.active_name = file.name
        self.schema_text = file.content
        logger.info("Loaded schema file %s", file.name)

    def select(self, name: str) -> str:
        f = self.get(name)
        self.active_name = f.name
        self.schema_text = f.content
        return f.content

    def remove(self, name: str) -> None:
        """Delete a file from history; clears the active schema if it was the one removed."""
        self.files = [f for f in self.reload() if f.name != name]
        self.store.save(self.files)
        if self.active_name == name:
            self.clear_active()
        logger.info("Removed schema file %s", name)

    def clear_active(self) -> None:
        self.active_name = None
        self.schema_text = ""
