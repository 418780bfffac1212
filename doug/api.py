"""doug.api

Stable *library* entrypoint for doug.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from doug.clock import FixedClock, SystemClock
from doug.errors import (
    AlreadyRunning,
    ConflictingWindow,
    CorruptStore,
    DougError,
    EmptyProjectName,
    EmptyStore,
    FrameNotFound,
    InvalidRange,
    MultipleRunningFrames,
    NoPriorProject,
    NoRunningProject,
    SettingsError,
    StoreIOError,
)
from doug.merge import merge
from doug.model import DayLog, Frame, LogEntry, MergeResult, ReportWindow
from doug.report import log, log_by_day, report
from doug.settings import Settings
from doug.storage import FrameFile
from doug.store import Clock, FrameChanges, IntervalStore, Selector
from doug.window import build_window


def load_store(path: Union[str, Path], *, clock: Optional[Clock] = None) -> IntervalStore:
    """Load a data file (any accepted layout) into an IntervalStore."""
    frames, next_id = FrameFile(path).load()
    return IntervalStore(frames, clock=clock, next_id=next_id)


def save_store(store: IntervalStore, path: Union[str, Path]) -> None:
    """Write the whole store to `path` (backup + atomic replace)."""
    FrameFile(path).save(store.frames, store.next_id)


# --- Public API exports -------------------------------------------------------
_PUBLIC_EXPORTS = (
    "AlreadyRunning",
    "ConflictingWindow",
    "CorruptStore",
    "DayLog",
    "DougError",
    "EmptyProjectName",
    "EmptyStore",
    "FixedClock",
    "Frame",
    "FrameChanges",
    "FrameFile",
    "FrameNotFound",
    "IntervalStore",
    "InvalidRange",
    "LogEntry",
    "MergeResult",
    "MultipleRunningFrames",
    "NoPriorProject",
    "NoRunningProject",
    "ReportWindow",
    "Selector",
    "Settings",
    "SettingsError",
    "StoreIOError",
    "SystemClock",
    "build_window",
    "load_store",
    "log",
    "log_by_day",
    "merge",
    "report",
    "save_store",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
