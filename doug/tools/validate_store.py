#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List

from doug.errors import DougError
from doug.schema import frame_from_record, upgrade_document
from doug.validate import LATEST_SCHEMA_VERSION, check_frames, validate_document


def _die(msg: str, rc: int = 2) -> int:
    print(f"[doug-validate-store] ERROR: {msg}", file=sys.stderr)
    return rc


def _declared_schema(raw: Any) -> int:
    if isinstance(raw, dict):
        v = raw.get("schema_version")
        return int(v) if isinstance(v, int) else 0
    return 0


def _collect_errors(raw: Any) -> List[str]:
    doc = upgrade_document(raw)
    errs = validate_document(doc)
    if errs:
        return errs
    frames = []
    for i, rec in enumerate(doc["frames"]):
        try:
            frames.append(frame_from_record(rec, index=i))
        except DougError as e:
            errs.append(str(e))
    if errs:
        return errs
    frames.sort(key=lambda f: (f.start, f.id))
    return check_frames(frames)


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="doug-validate-store",
        description=(
            "Validate a doug data file (periods.json).\n"
            "Legacy layouts (bare arrays, start_time/end_time periods) are upgraded before checking.\n"
            f"Use --write-json to save the upgraded schema v{LATEST_SCHEMA_VERSION} document."
        ),
    )
    ap.add_argument("--in", dest="in_json", required=True, help="Data file path")
    ap.add_argument("--write-json", default=None, help="Write the upgraded document to this path")
    ns = ap.parse_args(argv)

    p = Path(ns.in_json)
    if not p.exists():
        return _die(f"Missing JSON file: {p}")
    try:
        raw = json.loads(p.read_text(encoding="utf-8", errors="replace") or "[]")
    except json.JSONDecodeError as e:
        return _die(f"Failed to parse JSON: {p} ({e})")

    try:
        errs = _collect_errors(raw)
    except DougError as e:
        errs = [str(e)]

    if errs:
        print("[doug-validate-store] FAIL", file=sys.stderr)
        for e in errs:
            print(f"  - {e}", file=sys.stderr)
        return 3

    if ns.write_json:
        outp = Path(ns.write_json)
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_text(
            json.dumps(upgrade_document(raw), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
            newline="\n",
        )

    declared = _declared_schema(raw)
    note = "" if declared == LATEST_SCHEMA_VERSION else " (upgraded from legacy layout)"
    print(f"[doug-validate-store] OK{note}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
