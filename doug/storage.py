# doug/storage.py
"""Whole-file JSON persistence for frames.

One invocation does `lock -> load -> mutate -> save`. Saves copy the previous
file to `<name>.json-backup`, then write a temp file next to the target and
`os.replace` it into place, so a failed write never leaves a half-written store.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple, Union

from .errors import CorruptStore, StoreIOError
from .model import Frame
from .schema import decode_document, to_document
from .util.console import obs

DATA_FILE_NAME = "periods.json"
BACKUP_SUFFIX = ".json-backup"
LOCK_SUFFIX = ".lock"


class FrameFile:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    @classmethod
    def in_folder(cls, folder: Union[str, Path]) -> "FrameFile":
        return cls(Path(folder) / DATA_FILE_NAME)

    @property
    def backup_path(self) -> Path:
        return self.path.with_suffix(BACKUP_SUFFIX)

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + LOCK_SUFFIX)

    def load(self) -> Tuple[List[Frame], int]:
        """Return (frames, next_id). Missing or empty files are an empty store."""
        t0 = time.monotonic()
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            obs("storage", f"load.missing path={self.path}")
            return [], 1
        except UnicodeDecodeError as ex:
            raise CorruptStore(f"There was a serialization issue in {self.path}: {ex}") from ex
        except OSError as ex:
            raise StoreIOError(f"Couldn't read data file {self.path}: {ex}") from ex

        if not text.strip():
            return [], 1
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as ex:
            raise CorruptStore(f"There was a serialization issue in {self.path}: {ex}") from ex

        frames, next_id = decode_document(raw)
        elapsed_ms = int((time.monotonic() - t0) * 1000)
        obs("storage", f"load.ok ms={elapsed_ms} frames={len(frames)} path={self.path}")
        return frames, next_id

    def save(self, frames: Sequence[Frame], next_id: int) -> None:
        doc = to_document(frames, next_id)
        text = json.dumps(doc, ensure_ascii=False, indent=2) + "\n"
        t0 = time.monotonic()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                shutil.copyfile(self.path, self.backup_path)
                obs("storage", f"backup path={self.backup_path}")
            fd, tmp = tempfile.mkstemp(prefix=self.path.name + ".", suffix=".tmp", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as ex:
            raise StoreIOError(f"Couldn't write data file {self.path}: {ex}") from ex
        elapsed_ms = int((time.monotonic() - t0) * 1000)
        obs("storage", f"save.ok ms={elapsed_ms} frames={len(frames)} path={self.path}")

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold an exclusive lock file for one load-mutate-save cycle."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise StoreIOError(
                f"Data file is locked by another doug process ({self.lock_path}); "
                "remove the lock file if no other doug is running"
            ) from None
        except OSError as ex:
            raise StoreIOError(f"Couldn't lock data file {self.path}: {ex}") from ex
        try:
            os.write(fd, str(os.getpid()).encode("ascii"))
            os.close(fd)
            obs("storage", f"lock.acquired path={self.lock_path}")
            yield
        finally:
            try:
                os.unlink(self.lock_path)
            except FileNotFoundError:
                pass


__all__ = [
    "BACKUP_SUFFIX",
    "DATA_FILE_NAME",
    "FrameFile",
]
