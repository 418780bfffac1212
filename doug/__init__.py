"""doug, a time tracking command-line utility.

Public API:
  - import from `doug.api` (preferred) or `import doug` (re-export)
"""

from __future__ import annotations

from .api import *  # noqa: F401,F403
from . import api as _api

__all__ = list(_api.__all__)

__version__ = "0.6.0"
