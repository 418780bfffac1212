"""doug.tools package

Developer utilities run with `python -m doug.tools.<name>`:
  - validate_store: check (and optionally upgrade) a periods.json data file
"""

__all__: list[str] = []
