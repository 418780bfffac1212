"""Error kinds raised by the doug core and its collaborators.

The core raises; the CLI turns these into a message and a nonzero exit status.
"""

from __future__ import annotations


class DougError(Exception):
    """Base class for every error the tracker reports to its caller."""


class AlreadyRunning(DougError):
    def __init__(self, project: str) -> None:
        super().__init__(f"project {project} is being tracked; stop it first")
        self.project = project


class NoRunningProject(DougError):
    def __init__(self) -> None:
        super().__init__("No running project")


class NoPriorProject(DougError):
    def __init__(self) -> None:
        super().__init__("No previous project to restart")


class EmptyProjectName(DougError):
    def __init__(self) -> None:
        super().__init__("Project name must not be empty")


class EmptyStore(DougError):
    def __init__(self) -> None:
        super().__init__("No frames recorded yet")


class FrameNotFound(DougError):
    def __init__(self, selector: str) -> None:
        super().__init__(f"No frame matches {selector}")
        self.selector = selector


class InvalidRange(DougError):
    """Raised when an interval would end before it starts."""


class ConflictingWindow(DougError):
    def __init__(self) -> None:
        super().__init__("--from/--to cannot be combined with --year/--month/--week/--day")


class MultipleRunningFrames(DougError):
    def __init__(self, projects: tuple[str, ...]) -> None:
        names = ", ".join(projects)
        super().__init__(f"Merge would leave more than one running frame ({names}); stop one first")
        self.projects = projects


class CorruptStore(DougError):
    """Raised when persisted frames cannot be decoded or break an invariant."""


class StoreIOError(DougError, OSError):
    """Raised when the data file cannot be read, written or locked."""


class SettingsError(DougError):
    """Raised for an unreadable or malformed settings file."""


__all__ = [
    "AlreadyRunning",
    "ConflictingWindow",
    "CorruptStore",
    "DougError",
    "EmptyProjectName",
    "EmptyStore",
    "FrameNotFound",
    "InvalidRange",
    "MultipleRunningFrames",
    "NoPriorProject",
    "NoRunningProject",
    "SettingsError",
    "StoreIOError",
]
