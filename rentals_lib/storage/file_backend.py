"""Simple file-backed storage backend.

This backend stores each key as a UTF-8 text file `./data/<key><ext>`.
It provides atomic writes by writing to a temporary file then renaming.
Blocking file I/O runs in a worker thread so the event loop is never held.
"""
from __future__ import annotations
import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, unquote

from .base import StorageBackend

logger = logging.getLogger(__name__)


class FileStorageBackend(StorageBackend):
    def __init__(self, data_dir: str | Path = "./data", file_extension: str = ".json") -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.file_extension = file_extension

    def _ext(self) -> str:
        ext = self.file_extension or ""
        if ext and not ext.startswith('.'):
            ext = '.' + ext
        return ext

    def _path_for(self, key: str) -> Path:
        # Percent-encode so arbitrary keys map to a single, reversible filename
        safe_key = quote(key, safe="")
        return self.data_dir / f"{safe_key}{self._ext()}"

    def _write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(value)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)

    def _read(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            data = f.read()
        logger.debug("FileStorageBackend loaded %s (%d chars)", path, len(data))
        return data

    def _unlink(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def _list(self) -> List[str]:
        ext = self._ext()
        out = []
        for p in self.data_dir.iterdir():
            if not p.is_file():
                continue
            name = p.name
            if ext:
                if not name.endswith(ext):
                    continue
                name = name[: -len(ext)]
            elif name.endswith(".tmp"):
                continue
            out.append(unquote(name))
        return out

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"FileStorageBackend only stores text, got {type(value).__name__}")
        await asyncio.to_thread(self._write, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._unlink, key)

    async def keys(self) -> List[str]:
        return await asyncio.to_thread(self._list)

    def configure(self, **options) -> None:
        # Allow overriding the data directory and the file extension at runtime.
        data_dir = options.get("data_dir")
        if data_dir:
            self.data_dir = Path(data_dir)
            self.data_dir.mkdir(parents=True, exist_ok=True)
        if "file_extension" in options:
            self.file_extension = options["file_extension"] or ""
        return
