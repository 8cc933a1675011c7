"""Local-directory storage for uploaded resumes."""

from __future__ import annotations

import asyncio
from pathlib import Path
from uuid import uuid4

import structlog
from fastapi import UploadFile

from hirehub.core.errors import ValidationFailedError

logger = structlog.get_logger(__name__)

ALLOWED_RESUME_EXTENSIONS = frozenset({".pdf", ".doc", ".docx", ".odt", ".rtf", ".txt"})


class ResumeStorage:
    def __init__(self, base_dir: str | Path, *, max_bytes: int) -> None:
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes

    async def read_upload(self, upload: UploadFile) -> bytes:
        """Read at most one byte past the limit; ``check`` rejects anything longer."""
        return await upload.read(self.max_bytes + 1)

    def check(self, filename: str | None, content: bytes) -> list[dict[str, str]]:
        """Field errors for an upload; empty when the file is acceptable."""
        if not filename:
            return [{"field": "resume", "message": "Resume file is required"}]

        errors: list[dict[str, str]] = []
        extension = Path(filename).suffix.lower()
        if extension not in ALLOWED_RESUME_EXTENSIONS:
            errors.append({"field": "resume", "message": f"Unsupported file type '{extension}'"})
        if not content:
            errors.append({"field": "resume", "message": "Resume file is empty"})
        elif len(content) > self.max_bytes:
            errors.append({"field": "resume", "message": f"Resume exceeds {self.max_bytes} bytes"})
        return errors

    async def save(self, filename: str, content: bytes) -> str:
        """Persist the file and return its stored reference."""
        errors = self.check(filename, content)
        if errors:
            raise ValidationFailedError(errors)

        reference = f"{uuid4().hex}{Path(filename).suffix.lower()}"
        await asyncio.to_thread(self._write, self.base_dir / reference, content)
        logger.info("resume_stored", reference=reference, size=len(content))
        return reference

    async def delete(self, reference: str) -> None:
        await asyncio.to_thread((self.base_dir / reference).unlink, True)

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
