"""
Knowledge-base catalog.

Uploaded files are kept on disk under `<base_dir>/<category>/` with a JSON
index of their metadata. Deleting a file is a soft delete: the index entry
and the file stay, only its vectors are purged. Restoring re-embeds it.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from invisible_hr.exceptions import DocumentNotFoundError, UnsupportedFileTypeError, ValidationError
from invisible_hr.ingestion import IngestionPipeline
from invisible_hr.ingestion.extraction import SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

CATEGORIES = ("Policy", "Procedure", "FAQ", "Manual", "Other")
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_FILE_SIZE = 5 * 1024 * 1024
INDEX_FILENAME = "index.json"


class KnowledgeFile(BaseModel):
    """Catalog entry for one uploaded document."""

    id: str = Field(..., description="Stable id; the stored filename at upload time")
    filename: str = Field(..., description="Current filename on disk")
    name: str = Field(..., description="Sanitized display name")
    category: str
    description: str = ""
    uploader: str = "admin"
    upload_date: datetime
    deleted_at: Optional[datetime] = None
    chunks_embedded: int = 0


def sanitize_filename(name: str) -> str:
    """Filesystem-safe version of a display name."""
    cleaned = str(name or "").strip()[:MAX_NAME_LENGTH]
    cleaned = re.sub(r"\s+", "-", cleaned)
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "", cleaned)
    return cleaned or "file"


def _validate_name(name: Optional[str]) -> None:
    if name is None or not str(name).strip():
        raise ValidationError("File name is required", field="name")
    if len(str(name)) > MAX_NAME_LENGTH:
        raise ValidationError(f"File name exceeds {MAX_NAME_LENGTH} characters", field="name")


def _validate_description(description: Optional[str]) -> None:
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description exceeds {MAX_DESCRIPTION_LENGTH} characters", field="description")


class KnowledgeBase:
    """File catalog whose contents are kept in sync with the vector store."""

    def __init__(
        self,
        base_dir: Path,
        pipeline: IngestionPipeline,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.base_dir = Path(base_dir)
        self.pipeline = pipeline
        self.clock = clock
        self.index_path = self.base_dir / INDEX_FILENAME
        for category in CATEGORIES:
            (self.base_dir / category).mkdir(parents=True, exist_ok=True)

    # Index persistence

    def _read_index(self) -> List[KnowledgeFile]:
        if not self.index_path.exists():
            return []
        with open(self.index_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return [KnowledgeFile.model_validate(entry) for entry in data.get("files", [])]

    def _write_index(self, files: List[KnowledgeFile]) -> None:
        payload = {"files": [entry.model_dump(mode="json") for entry in files]}
        tmp_path = self.index_path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.index_path)

    def _save_entry(self, updated: KnowledgeFile) -> KnowledgeFile:
        files = [updated if entry.id == updated.id else entry for entry in self._read_index()]
        self._write_index(files)
        return updated

    def _path_for(self, entry: KnowledgeFile) -> Path:
        return self.base_dir / entry.category / entry.filename

    # Operations

    def upload(
        self,
        name: str,
        category: str,
        file_bytes: bytes,
        original_filename: str,
        description: str = "",
        uploader: str = "admin",
    ) -> KnowledgeFile:
        """
        Store and index a new document.

        The file is embedded before the catalog entry is written, so a failed
        ingestion leaves no entry behind.
        """
        _validate_name(name)
        _validate_description(description)
        if not file_bytes:
            raise ValidationError("No file provided", field="file")
        if len(file_bytes) > MAX_FILE_SIZE:
            raise ValidationError("File exceeds the 5 MB upload limit", field="file")

        extension = Path(original_filename).suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFileTypeError(original_filename, "only .pdf, .docx and .txt files are allowed")

        chosen_category = category if category in CATEGORIES else "Other"
        base_name = sanitize_filename(name)
        existing_ids = {entry.id for entry in self._read_index()}
        now = self.clock()
        timestamp = int(now.timestamp() * 1000)
        filename = f"{timestamp}_{base_name}{extension}"
        while filename in existing_ids:
            timestamp += 1
            filename = f"{timestamp}_{base_name}{extension}"

        path = self.base_dir / chosen_category / filename
        path.write_bytes(file_bytes)
        try:
            chunks = self.pipeline.ingest(file_bytes, original_filename, filename)
        except Exception:
            path.unlink(missing_ok=True)
            raise

        entry = KnowledgeFile(
            id=filename,
            filename=filename,
            name=base_name,
            category=chosen_category,
            description=description or "",
            uploader=uploader or "admin",
            upload_date=now,
            chunks_embedded=chunks,
        )
        self._write_index(self._read_index() + [entry])
        logger.info(f"Uploaded {original_filename} as {filename} ({chunks} chunks)")
        return entry

    def get(self, file_id: str) -> KnowledgeFile:
        for entry in self._read_index():
            if entry.id == file_id:
                return entry
        raise DocumentNotFoundError(file_id)

    def read_bytes(self, file_id: str) -> bytes:
        entry = self.get(file_id)
        path = self._path_for(entry)
        if not path.exists():
            raise DocumentNotFoundError(file_id)
        return path.read_bytes()

    def list_files(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        include_deleted: bool = False,
        sort_by: str = "date",
        sort_dir: str = "desc",
    ) -> List[KnowledgeFile]:
        """Filter and sort catalog entries; unknown categories are not filtered on."""
        files = self._read_index()
        if not include_deleted:
            files = [f for f in files if f.deleted_at is None]
        if category in CATEGORIES:
            files = [f for f in files if f.category == category]
        if q:
            needle = q.lower()
            files = [f for f in files if needle in f.name.lower() or needle in f.description.lower()]

        reverse = sort_dir != "asc"
        if sort_by == "name":
            files.sort(key=lambda f: f.name.lower(), reverse=reverse)
        elif sort_by == "category":
            files.sort(key=lambda f: f.category, reverse=reverse)
        else:
            files.sort(key=lambda f: f.upload_date, reverse=reverse)
        return files

    def update(
        self,
        file_id: str,
        name: Optional[str] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> KnowledgeFile:
        """Rename, recategorize or redescribe a file. The id never changes."""
        entry = self.get(file_id)
        changes: Dict = {}

        new_filename = entry.filename
        if name is not None:
            _validate_name(name)
            base_name = sanitize_filename(name)
            timestamp = entry.filename.split("_", 1)[0]
            new_filename = f"{timestamp}_{base_name}{Path(entry.filename).suffix}"
            changes["name"] = base_name
        new_category = category if category in CATEGORIES else entry.category
        if description is not None:
            _validate_description(description)
            changes["description"] = description

        source = self._path_for(entry)
        destination = self.base_dir / new_category / new_filename
        if source != destination and source.exists():
            source.rename(destination)

        # Vector metadata carries the filename, so a rename re-embeds live files
        if new_filename != entry.filename and entry.deleted_at is None and destination.exists():
            changes["chunks_embedded"] = self.pipeline.reingest(destination.read_bytes(), new_filename, file_id)

        changes.update({"filename": new_filename, "category": new_category})
        updated = entry.model_copy(update=changes)
        logger.info(f"Updated {file_id}: {changes}")
        return self._save_entry(updated)

    def delete(self, file_id: str) -> KnowledgeFile:
        """Soft delete: mark the entry and purge its vectors."""
        entry = self.get(file_id)
        updated = self._save_entry(entry.model_copy(update={"deleted_at": self.clock()}))
        self.pipeline.purge(file_id)
        return updated

    def restore(self, file_id: str) -> KnowledgeFile:
        """Undo a soft delete and re-embed the stored file."""
        entry = self.get(file_id)
        changes: Dict = {"deleted_at": None}
        path = self._path_for(entry)
        if path.exists():
            changes["chunks_embedded"] = self.pipeline.reingest(path.read_bytes(), entry.filename, file_id)
        else:
            logger.warning(f"Restored {file_id} but its file is missing on disk; nothing re-embedded")
        return self._save_entry(entry.model_copy(update=changes))

    def bulk_delete(self, file_ids: List[str]) -> List[str]:
        """Soft delete every known id; unknown ids are skipped."""
        if not file_ids:
            raise ValidationError("ids list is required", field="ids")
        deleted = []
        for file_id in file_ids:
            try:
                self.delete(file_id)
            except DocumentNotFoundError:
                logger.warning(f"Bulk delete skipped unknown id {file_id}")
                continue
            deleted.append(file_id)
        return deleted
