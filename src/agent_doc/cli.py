from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List

from . import __version__
from .kernel.errors import AgentDocError, UsageError
from .kernel.registry import SessionRegistry, load_registry
from .kernel.settings import Settings, load_settings
from .ops import claim_ops, focus_ops, layout_ops, prompt_ops, resync_ops, route_ops, start_ops
from .paths import project_root, sessions_path
from .runners.tmux import Tmux
from .sync.loop import AgentDocClient, FileHost, ReconcileLoop
from .util.obslog import setup_root_json_logging

logger = logging.getLogger("agent_doc.cli")


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _warn(msg: str) -> None:
    print(f"warning: {msg}", file=sys.stderr)


def _note(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass
class _Context:
    root: Path
    settings: Settings
    registry: SessionRegistry
    tmux: Tmux


def _context() -> _Context:
    root = project_root()
    settings = load_settings()
    return _Context(
        root=root,
        settings=settings,
        registry=load_registry(sessions_path(root)),
        tmux=Tmux.from_settings(settings),
    )


def cmd_route(args: argparse.Namespace) -> int:
    ctx = _context()
    res = route_ops.route(Path(args.file), registry=ctx.registry, tmux=ctx.tmux, settings=ctx.settings, root=ctx.root)
    if res.generated_session:
        _note(f"Generated session UUID: {res.session_id}")
    if res.action == "started":
        _note(f"Started agent for {res.file} in new {res.created} (pane {res.pane})")
    _print_json({"ok": True, "result": res.to_dict()})
    return 0


def cmd_start(args: argparse.Namespace) -> int:
    ctx = _context()
    start_ops.start(Path(args.file), registry=ctx.registry, settings=ctx.settings, root=ctx.root)
    return 0


def cmd_claim(args: argparse.Namespace) -> int:
    ctx = _context()
    res = claim_ops.claim(
        Path(args.file),
        registry=ctx.registry,
        tmux=ctx.tmux,
        settings=ctx.settings,
        root=ctx.root,
        pane=args.pane or None,
        window=args.window or None,
        position=args.position or None,
    )
    if res.generated_session:
        _note(f"Generated session UUID: {res.session_id}")
    _note(f"Claimed {res.file} for pane {res.pane} (session {res.session_id[:8]})")
    _print_json({"ok": True, "result": res.to_dict()})
    return 0


def cmd_focus(args: argparse.Namespace) -> int:
    ctx = _context()
    result = focus_ops.focus(Path(args.file), registry=ctx.registry, tmux=ctx.tmux, root=ctx.root)
    _print_json({"ok": True, "result": result})
    return 0


def cmd_layout(args: argparse.Namespace) -> int:
    ctx = _context()
    res = layout_ops.layout(
        [Path(f) for f in args.files],
        registry=ctx.registry,
        tmux=ctx.tmux,
        settings=ctx.settings,
        split=args.split,
        window=args.window or None,
        root=ctx.root,
    )
    for s in res.skipped:
        _warn(f"{s['reason']}, skipping")
    for p in res.problems:
        _warn(p["message"])
    for pane in res.broken:
        _note(f"Broke out pane {pane} from window {res.target_window}")
    _print_json({"ok": True, "result": res.to_dict()})
    return 0


def cmd_resync(_: argparse.Namespace) -> int:
    ctx = _context()
    res = resync_ops.resync(registry=ctx.registry, tmux=ctx.tmux)
    for r in res.removed:
        _note(f"Removed stale session {r['session_id'][:8]} (pane {r['pane']}, {r['file'] or 'no file'})")
    _note(f"Resync: {len(res.removed)} removed, {res.remaining} remaining")
    _print_json({"ok": True, "result": res.to_dict()})
    return 0


def cmd_prompt(args: argparse.Namespace) -> int:
    ctx = _context()
    if args.all:
        entries = prompt_ops.poll_all(registry=ctx.registry, tmux=ctx.tmux)
        _print_json([e.to_json_dict() for e in entries])
        return 0
    if not args.file:
        raise UsageError("prompt requires a file unless --all is given")
    if args.answer is not None:
        result = prompt_ops.answer(Path(args.file), int(args.answer), registry=ctx.registry, tmux=ctx.tmux, root=ctx.root)
        if result.get("answered"):
            _note(f"Sent option {args.answer} to pane {result['pane']}")
        _print_json({"ok": True, "result": result})
        return 0
    info = prompt_ops.prompt(Path(args.file), registry=ctx.registry, tmux=ctx.tmux, root=ctx.root)
    _print_json(info.to_json_dict())
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    root = project_root()
    settings = load_settings()
    loop = ReconcileLoop(root, FileHost(), AgentDocClient(root), settings=settings)
    for f in args.files:
        loop.track(Path(f))

    def _on_signal(signum: int, frame: Any) -> None:
        loop.request_stop()

    signal.signal(signal.SIGTERM, _on_signal)
    signal.signal(signal.SIGINT, _on_signal)
    loop.start()
    try:
        loop.wait()
    finally:
        loop.stop(timeout=5.0)
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    print(__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="agent-doc", description="Route documents to agent panes in tmux")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_route = sub.add_parser("route", help="Send /agent-doc <file> to the document's pane (auto-start if none)")
    p_route.add_argument("file", help="Session document")
    p_route.set_defaults(func=cmd_route)

    p_start = sub.add_parser("start", help="Register the current pane and exec the agent")
    p_start.add_argument("file", help="Session document")
    p_start.set_defaults(func=cmd_start)

    p_claim = sub.add_parser("claim", help="Bind a document to a pane (default: current pane)")
    p_claim.add_argument("file", help="Session document")
    target = p_claim.add_mutually_exclusive_group()
    target.add_argument("--pane", default=None, help="Explicit pane id (e.g. %%3)")
    target.add_argument("--position", default=None, choices=list(claim_ops.POSITIONS), help="Pane by position")
    p_claim.add_argument("--window", default="", help="Window to resolve the pane or position in")
    p_claim.set_defaults(func=cmd_claim)

    p_focus = sub.add_parser("focus", help="Select the document's pane")
    p_focus.add_argument("file", help="Session document")
    p_focus.set_defaults(func=cmd_focus)

    p_layout = sub.add_parser("layout", help="Arrange panes to mirror the editor split layout")
    p_layout.add_argument("files", nargs="+", help="Visible documents, most recently active first")
    p_layout.add_argument("--split", default="h", choices=["h", "v"], help="h: side by side (default), v: stacked")
    p_layout.add_argument("--window", default="", help="Only arrange panes already in this window")
    p_layout.set_defaults(func=cmd_layout)

    p_resync = sub.add_parser("resync", help="Remove registry entries whose pane is gone")
    p_resync.set_defaults(func=cmd_resync)

    p_prompt = sub.add_parser("prompt", help="Detect (or answer) a numbered-option prompt in the agent pane")
    p_prompt.add_argument("file", nargs="?", default="", help="Session document")
    p_prompt.add_argument("--all", action="store_true", help="Poll every registered pane")
    p_prompt.add_argument("--answer", type=int, default=None, metavar="N", help="Select option N (1-based)")
    p_prompt.set_defaults(func=cmd_prompt)

    p_watch = sub.add_parser("watch", help="Keep documents in sync and report prompts as JSON lines")
    p_watch.add_argument("files", nargs="*", help="Documents to track (more are picked up from prompt polls)")
    p_watch.set_defaults(func=cmd_watch)

    p_version = sub.add_parser("version", help="Show version")
    p_version.set_defaults(func=cmd_version)

    return p


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_root_json_logging(component="cli", level=load_settings().log_level)
    try:
        return int(args.func(args))
    except AgentDocError as e:
        logger.info("command failed: %s", e, extra={"op": args.cmd})
        _print_json({"ok": False, "error": e.to_dict()})
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
