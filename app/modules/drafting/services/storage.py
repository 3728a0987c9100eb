"""
File storage collaborator.

``FileStore`` is the list/download/store contract the pipeline (and any
external sync job) talks to. ``LocalFileStore`` keeps objects on disk as
``<root>/<bucket>/<owner>/<name>``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Protocol

from starlette.concurrency import run_in_threadpool

from app.modules.drafting.schema.documents import CandidateFile
from core.errors import NotFoundError

logger = logging.getLogger(__name__)


class FileStore(Protocol):
    async def list_files(self, bucket: str, owner_scope: str) -> List[CandidateFile]:
        ...

    async def download(self, bucket: str, storage_path: str) -> bytes:
        ...

    async def store(self, bucket: str, storage_path: str, data: bytes) -> str:
        ...


class LocalFileStore:
    def __init__(self, root: str | os.PathLike):
        self._root = Path(root).resolve()

    def _resolve(self, bucket: str, storage_path: str) -> Path:
        base = (self._root / bucket).resolve()
        target = (base / storage_path).resolve()
        if base != target and base not in target.parents:
            raise NotFoundError(f"Object not found: {bucket}/{storage_path}")
        return target

    def _list(self, bucket: str, owner_scope: str) -> List[CandidateFile]:
        folder = self._resolve(bucket, owner_scope)
        if not folder.is_dir():
            return []
        entries = []
        for path in sorted(folder.iterdir(), key=lambda p: p.name, reverse=True):
            if not path.is_file():
                continue
            entries.append(
                CandidateFile(
                    filename=path.name,
                    storage_path=f"{owner_scope}/{path.name}",
                    size_hint=path.stat().st_size,
                )
            )
        return entries

    async def list_files(self, bucket: str, owner_scope: str) -> List[CandidateFile]:
        return await run_in_threadpool(self._list, bucket, owner_scope)

    async def download(self, bucket: str, storage_path: str) -> bytes:
        target = self._resolve(bucket, storage_path)
        if not target.is_file():
            raise NotFoundError(f"Object not found: {bucket}/{storage_path}")
        return await run_in_threadpool(target.read_bytes)

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def store(self, bucket: str, storage_path: str, data: bytes) -> str:
        target = self._resolve(bucket, storage_path)
        await run_in_threadpool(self._write, target, data)
        logger.info(f"[storage] stored {len(data)} bytes at {bucket}/{storage_path}")
        return storage_path
