"""Pane controller: a thin capability wrapper over the tmux binary.

Every call is a blocking subprocess with an upper time bound. A non-zero
exit is raised as SubprocessError unless the call site asks for the return
code; callers decide what they tolerate.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import Callable, List, Set, Tuple

from ..kernel.errors import ConfigurationError, SubprocessError

logger = logging.getLogger("agent_doc.tmux")

SPLIT_FLAGS = {"h": "-h", "v": "-v"}


class Tmux:
    def __init__(
        self,
        *,
        socket: str = "",
        timeout_s: float = 5.0,
        binary: str = "tmux",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.socket = (socket or "").strip()
        self.timeout_s = float(timeout_s)
        self.binary = binary
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings) -> "Tmux":
        return cls(socket=settings.tmux_socket, timeout_s=settings.tmux_timeout_s)

    def _argv(self, args: List[str]) -> List[str]:
        argv = [self.binary]
        if self.socket:
            # Isolated server: no user config leaks in.
            argv += ["-L", self.socket, "-f", "/dev/null"]
        return argv + list(args)

    def _run(self, args: List[str], *, check: bool = True) -> Tuple[int, str, str]:
        argv = self._argv(args)
        try:
            p = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except FileNotFoundError as e:
            raise ConfigurationError(f"{self.binary} not found on PATH; install tmux first") from e
        except subprocess.TimeoutExpired as e:
            raise SubprocessError(
                f"tmux {args[0]} timed out after {self.timeout_s:g}s", argv=argv, returncode=124
            ) from e
        code, out, err = int(p.returncode), (p.stdout or ""), (p.stderr or "")
        logger.debug("tmux %s -> %s", " ".join(args), code)
        if check and code != 0:
            raise SubprocessError(f"tmux {args[0]} failed: {err.strip()}", argv=argv, returncode=code, stderr=err)
        return code, out, err

    # -- environment ---------------------------------------------------------

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    @staticmethod
    def current_pane() -> str:
        pane = os.environ.get("TMUX_PANE", "").strip()
        if not pane:
            raise ConfigurationError("no current pane: TMUX_PANE is not set (run inside tmux or pass --pane)")
        return pane

    def running(self) -> bool:
        code, _, _ = self._run(["has-session"], check=False)
        return code == 0

    def has_session(self, name: str) -> bool:
        code, _, _ = self._run(["has-session", "-t", name], check=False)
        return code == 0

    # -- panes ---------------------------------------------------------------

    def live_panes(self) -> Set[str]:
        code, out, _ = self._run(["list-panes", "-a", "-F", "#{pane_id}"], check=False)
        if code != 0:
            # No server means no panes.
            return set()
        return {line.strip() for line in out.splitlines() if line.strip()}

    def is_alive(self, pane: str) -> bool:
        wanted = (pane or "").strip()
        return bool(wanted) and wanted in self.live_panes()

    def capture(self, pane: str) -> str:
        _, out, _ = self._run(["capture-pane", "-t", pane, "-p"])
        return out

    def send_keys(self, pane: str, text: str, *, submit: bool = True) -> None:
        # Literal text and the confirming key go out as separate calls;
        # combining them is unreliable against some TUI input modes.
        self._run(["send-keys", "-t", pane, "-l", text])
        if submit:
            self._sleep(0.05)
            self._run(["send-keys", "-t", pane, "Enter"])

    def send_key(self, pane: str, key: str) -> None:
        self._run(["send-keys", "-t", pane, key])

    def resolve_pane(self, target: str) -> str:
        """Resolve any tmux target (pane id, window, `{left}`, `@3.{top}`) to a pane id."""
        _, out, _ = self._run(["display-message", "-p", "-t", target, "#{pane_id}"])
        pane = out.strip()
        if not pane:
            raise SubprocessError(f"tmux returned no pane for target {target}", argv=self._argv(["display-message"]))
        return pane

    def pane_window(self, pane: str) -> str:
        _, out, _ = self._run(["display-message", "-p", "-t", pane, "#{window_id}"])
        return out.strip()

    def list_window_panes(self, window: str) -> List[str]:
        _, out, _ = self._run(["list-panes", "-t", window, "-F", "#{pane_id}"])
        return [ln.strip() for ln in out.splitlines() if ln.strip()]

    def display_message(self, pane: str, message: str, *, duration_ms: int = 3000) -> None:
        self._run(["display-message", "-t", pane, "-d", str(int(duration_ms)), message])

    # -- sessions and windows ------------------------------------------------

    def new_session(self, name: str, cwd: Path) -> str:
        _, out, _ = self._run(["new-session", "-d", "-s", name, "-c", str(cwd), "-P", "-F", "#{pane_id}"])
        return out.strip()

    def new_window(self, session: str, cwd: Path) -> str:
        _, out, _ = self._run(["new-window", "-a", "-t", session, "-c", str(cwd), "-P", "-F", "#{pane_id}"])
        return out.strip()

    def auto_start(self, session: str, cwd: Path) -> Tuple[str, str]:
        """Create a pane for a new agent; returns (pane_id, "session" | "window").

        1. no server running -> new session
        2. server without the named session -> new session
        3. named session exists -> new window inside it
        """
        if not self.running() or not self.has_session(session):
            return self.new_session(session, cwd), "session"
        return self.new_window(session, cwd), "window"

    # -- layout --------------------------------------------------------------

    def break_pane(self, pane: str) -> None:
        self._run(["break-pane", "-s", pane, "-d"])

    def join_pane(self, src: str, dst: str, split: str = "h") -> None:
        flag = SPLIT_FLAGS.get(split)
        if flag is None:
            raise ValueError(f"invalid split: {split!r} (expected 'h' or 'v')")
        self._run(["join-pane", "-s", src, "-t", dst, flag])

    def select_window(self, target: str) -> None:
        self._run(["select-window", "-t", target])

    def select_pane(self, pane: str) -> None:
        self._run(["select-pane", "-t", pane])

    def focus(self, pane: str) -> None:
        # select-pane alone does not switch the active window.
        self.select_window(pane)
        self.select_pane(pane)
