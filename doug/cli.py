from __future__ import annotations

import argparse
import datetime as dt
import os
import shlex
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from .clock import SystemClock
from .errors import CorruptStore, DougError, NoRunningProject
from .format import fmt_time, render_frame, render_log, render_merge, render_report, render_status
from .merge import merge
from .report import earliest_start, log_by_day, report
from .settings import Settings, default_folder
from .storage import FrameFile
from .store import FrameChanges, IntervalStore, Selector
from .util.console import obs
from .util.duration import format_duration
from .util.timeparse import parse_date, parse_datetime
from .util.tz import resolve_tz
from .window import build_window

Clock = Callable[[], dt.datetime]


@dataclass
class _Context:
    settings_folder: Path
    settings: Settings
    frame_file: FrameFile
    tz: dt.tzinfo
    clock: Clock

    def now(self) -> dt.datetime:
        return self.clock()

    def load(self) -> IntervalStore:
        frames, next_id = self.frame_file.load()
        return IntervalStore(frames, clock=self.clock, next_id=next_id)

    @contextmanager
    def session(self) -> Iterator[IntervalStore]:
        """Lock, load, hand the store to one operation, then save it.

        Nothing is written when the operation raises.
        """
        with self.frame_file.lock():
            store = self.load()
            yield store
            self.frame_file.save(store.frames, store.next_id)


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="doug", description="A time tracking command-line utility")
    ap.add_argument(
        "--data-dir",
        default=None,
        help="Folder holding periods.json (default: settings data_location)",
    )
    ap.add_argument(
        "--tz",
        default=None,
        help="Bucketing timezone for days/weeks (default: env DOUG_TZ or settings tz, usually 'local')",
    )
    sub = ap.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("start", help="Track new or existing project")
    p.add_argument("project", nargs="?", help="Project to track. If missing, start behaves like restart.")
    p.add_argument("-g", "--tag", action="append", default=[], help="Tag for the new frame (repeatable)")

    p = sub.add_parser("status", help="Display elapsed time, start time, and running project name")
    p.add_argument("-s", "--simple", action="store_true", help="Print running project name or nothing")
    p.add_argument("-t", "--time", action="store_true", help="Print time for currently tracked project")

    sub.add_parser("stop", help="Stop any running projects")
    sub.add_parser("cancel", help="Stop running project and remove most recent time interval")

    p = sub.add_parser("restart", help="Track last running project")
    p.add_argument("-g", "--tag", action="append", default=None, help="Replace the previous frame's tags")

    sub.add_parser("log", help="Display time intervals across all projects")

    p = sub.add_parser("report", help="Display aggregate time from projects")
    p.add_argument("-y", "--year", action="count", default=0, help="Limit report to past year. Use multiple to increase interval.")
    p.add_argument("-m", "--month", action="count", default=0, help="Limit report to past month. Use multiple to increase interval.")
    p.add_argument("-w", "--week", action="count", default=0, help="Limit report to past week. Use multiple to increase interval.")
    p.add_argument("-d", "--day", action="count", default=0, help="Limit report to past day. Use multiple to increase interval.")
    p.add_argument("-f", "--from", dest="from_", default=None, help="Date when report should start (e.g. 2018-1-1)")
    p.add_argument("-t", "--to", default=None, help="Date when report should end, inclusive (e.g. 2018-1-20)")
    p.add_argument("-p", "--project", default=None, help="Only count this project")
    p.add_argument("-g", "--tag", action="append", default=[], help="Only count frames carrying this tag (repeatable)")

    p = sub.add_parser("amend", help="Change name of currently running (or last) project")
    p.add_argument("project", help="New project name")

    p = sub.add_parser("edit", help="Edit last frame or currently running frame")
    p.add_argument("-s", "--start", default=None, help="Starting date (e.g. 'today 9:00', 'yesterday 2:30pm')")
    p.add_argument("-e", "--end", default=None, help="Ending date")
    p.add_argument("-p", "--project", default=None, help="New project name")
    p.add_argument("-g", "--tag", action="append", default=None, help="Replace tags (repeatable)")
    p.add_argument("--frame", default=None, help="Frame to edit: an id (12) or a position (@-2)")

    p = sub.add_parser("delete", help="Delete all intervals for project")
    p.add_argument("project", help="Project to delete")

    p = sub.add_parser("merge", help="Merge frames from another data file")
    p.add_argument("file", help="Path to another periods.json")
    p.add_argument("--dry-run", action="store_true", help="Report what would change without saving")

    p = sub.add_parser("settings", help="Show or change settings")
    p.add_argument("--path", default=None, help="Move the data file to this folder")
    p.add_argument("--timezone", default=None, help="Set the default bucketing timezone")
    p.add_argument("--clear", action="store_true", help="Reset the settings file")

    return ap


def _context(args: argparse.Namespace, clock: Optional[Clock]) -> _Context:
    folder = default_folder()
    if args.command == "settings" and args.clear:
        # A malformed file must still be resettable.
        Settings.defaults(folder).clear(folder)
    settings = Settings.load(folder)
    tz_name = settings.effective_tz(args.tz)
    try:
        tz = resolve_tz(tz_name)
    except ValueError as e:
        raise SystemExit(f"Invalid --tz value: {e}")
    data_dir = Path(args.data_dir).expanduser() if args.data_dir else settings.data_location
    return _Context(
        settings_folder=folder,
        settings=settings,
        frame_file=FrameFile.in_folder(data_dir),
        tz=tz,
        clock=clock or SystemClock(tz),
    )


def _cmd_start(ctx: _Context, args: argparse.Namespace) -> List[str]:
    with ctx.session() as store:
        if args.project is not None:
            frame = store.start(args.project, args.tag)
        else:
            frame = store.restart(args.tag or None)
    return [f"Started tracking project {frame.project} at {fmt_time(frame.start, ctx.tz)}"]


def _cmd_restart(ctx: _Context, args: argparse.Namespace) -> List[str]:
    with ctx.session() as store:
        frame = store.restart(args.tag)
    return [f"Tracking last running project: {frame.project}"]


def _cmd_stop(ctx: _Context, args: argparse.Namespace) -> List[str]:
    with ctx.session() as store:
        frame = store.stop()
    return [f"Stopped project {frame.project}, started {format_duration(frame.elapsed(frame.end))} ago"]


def _cmd_cancel(ctx: _Context, args: argparse.Namespace) -> List[str]:
    with ctx.session() as store:
        frame = store.cancel()
        now = store.now()
    return [f"Canceled project {frame.project}, started {format_duration(frame.elapsed(now))} ago"]


def _cmd_status(ctx: _Context, args: argparse.Namespace) -> List[str]:
    store = ctx.load()
    frame = store.current()
    if frame is None:
        if args.simple or args.time:
            return []
        raise NoRunningProject()
    now = store.now()
    if args.simple:
        return [frame.project]
    if args.time:
        return [format_duration(frame.elapsed(now))]
    return [render_status(frame, now, ctx.tz)]


def _cmd_log(ctx: _Context, args: argparse.Namespace) -> List[str]:
    store = ctx.load()
    now = store.now()
    text = render_log(log_by_day(store.frames, now, ctx.tz), now, ctx.tz)
    return [text] if text else []


def _cmd_report(ctx: _Context, args: argparse.Namespace) -> List[str]:
    store = ctx.load()
    now = store.now()
    window = build_window(
        now,
        years=args.year,
        months=args.month,
        weeks=args.week,
        days=args.day,
        from_=parse_date(args.from_, now) if args.from_ else None,
        to=parse_date(args.to, now) if args.to else None,
        project=args.project,
        tags=args.tag,
    )
    totals = report(store.frames, window, now)
    return [render_report(totals, window, ctx.tz, earliest_start(store.frames, window))]


def _cmd_amend(ctx: _Context, args: argparse.Namespace) -> List[str]:
    with ctx.session() as store:
        old = store.current() or store.last()
        frame = store.amend(args.project)
    old_name = old.project if old is not None else ""
    return [f"Renamed tracking project {old_name} -> {frame.project}"]


def _cmd_edit(ctx: _Context, args: argparse.Namespace) -> List[str]:
    now = ctx.now()
    changes = FrameChanges(
        start=parse_datetime(args.start, now) if args.start else None,
        end=parse_datetime(args.end, now) if args.end else None,
        project=args.project,
        tags=tuple(args.tag) if args.tag is not None else None,
    )
    selector = Selector.parse(args.frame) if args.frame else None
    if changes.is_empty and selector is None:
        return _open_editor(ctx)

    with ctx.session() as store:
        frame = store.edit(changes, selector)
        now = store.now()
    return [f"#{frame.id} {frame.project} {render_frame(frame, now, ctx.tz)}"]


def _open_editor(ctx: _Context) -> List[str]:
    editor = (os.getenv("EDITOR", "") or "").strip()
    if not editor:
        raise SystemExit("Error: Couldn't open editor ($EDITOR is not set)")
    try:
        cmd = shlex.split(editor, posix=True)
    except ValueError as ex:
        raise SystemExit(f"Error: Problem with editing (invalid $EDITOR: {ex})")
    path = ctx.frame_file.path
    with ctx.frame_file.lock():
        try:
            rc = subprocess.run(cmd + [str(path)], check=False).returncode
        except FileNotFoundError:
            raise SystemExit(f"Error: Problem with editing (editor {cmd[0]!r} not found on PATH)")
    if rc != 0:
        raise SystemExit(f"Error: Problem with editing ({editor} exited {rc})")
    try:
        ctx.load()
    except CorruptStore as e:
        raise SystemExit(f"Error: edited file is no longer valid: {e}")
    return [f"File: {path}"]


def _cmd_delete(ctx: _Context, args: argparse.Namespace) -> List[str]:
    with ctx.session() as store:
        removed = store.delete(args.project)
    if not removed:
        return [f"Project {args.project} has no frames"]
    return [f"Deleted project {args.project} ({removed} frame(s))"]


def _cmd_merge(ctx: _Context, args: argparse.Namespace) -> List[str]:
    other = FrameFile(Path(args.file).expanduser())
    if not other.path.is_file():
        raise SystemExit(f"Error: No data file at {other.path}")
    incoming, _ = other.load()
    with ctx.frame_file.lock():
        store = ctx.load()
        result = merge(store, incoming, dry_run=args.dry_run)
        if not result.dry_run:
            ctx.frame_file.save(result.frames, result.next_id)
    return [render_merge(result, ctx.tz)]


def _cmd_settings(ctx: _Context, args: argparse.Namespace) -> List[str]:
    settings = ctx.settings
    if args.clear:
        settings.clear(ctx.settings_folder)
        return ["Cleared settings file"]
    changed = False
    if args.path:
        new_file = FrameFile.in_folder(Path(args.path).expanduser())
        with ctx.frame_file.lock():
            frames, next_id = ctx.frame_file.load()
            new_file.save(frames, next_id)
        settings.data_location = new_file.path.parent
        changed = True
    if args.timezone:
        try:
            resolve_tz(args.timezone)
        except ValueError as e:
            raise SystemExit(f"Invalid --timezone value: {e}")
        settings.tz = args.timezone
        changed = True
    if changed:
        settings.save(ctx.settings_folder)
    lines = [f"{ctx.settings_folder}:"]
    lines.extend(f"  {k}: {v}" for k, v in settings.to_dict().items())
    return lines


_COMMANDS = {
    "start": _cmd_start,
    "status": _cmd_status,
    "stop": _cmd_stop,
    "cancel": _cmd_cancel,
    "restart": _cmd_restart,
    "log": _cmd_log,
    "report": _cmd_report,
    "amend": _cmd_amend,
    "edit": _cmd_edit,
    "delete": _cmd_delete,
    "merge": _cmd_merge,
    "settings": _cmd_settings,
}


def main(argv: Optional[List[str]] = None, *, clock: Optional[Clock] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        ctx = _context(args, clock)
        obs("cli", f"command={args.command} data={ctx.frame_file.path}")
        lines = _COMMANDS[args.command](ctx, args)
    except (DougError, ValueError) as e:
        raise SystemExit(f"Error: {e}")
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
