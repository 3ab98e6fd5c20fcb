"""Client-side reconciliation loop: keep tracked documents in sync and surface prompts.

One background thread runs `run_cycle()` on a fixed schedule. A cycle saves
unsaved local edits, reconciles files changed on disk (reload or 3-way merge)
and feeds one `prompt --all` poll into PromptDisplayState. Nothing that goes
wrong inside a cycle stops the loop.
"""
from __future__ import annotations

import json
import logging
import subprocess
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple

from pydantic import ValidationError

from ..contracts.v1 import PromptAllEntry, PromptInfo
from ..kernel.settings import Settings
from ..paths import relative_to_root
from .merge import merge3
from .prompt_state import PromptDisplayState

logger = logging.getLogger("agent_doc.sync")


@dataclass
class TrackedDocument:
    rel: str
    path: Path
    mtime_ns: int = 0
    # content as of the last save we made or observed; the merge ancestor
    last_saved: Optional[str] = None


def _mtime_ns(path: Path) -> int:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return 0


class DocumentHost(ABC):
    """What the loop needs from an editor: buffers, saving, notifications, prompt UI."""

    @abstractmethod
    def has_unsaved(self, doc: TrackedDocument) -> bool:
        pass

    @abstractmethod
    def save(self, doc: TrackedDocument) -> None:
        pass

    @abstractmethod
    def get_text(self, doc: TrackedDocument) -> str:
        pass

    @abstractmethod
    def set_text(self, doc: TrackedDocument, text: str) -> None:
        pass

    @abstractmethod
    def reload(self, doc: TrackedDocument) -> None:
        pass

    @abstractmethod
    def notify(self, message: str) -> None:
        pass

    @abstractmethod
    def show_prompt(self, entry: PromptAllEntry, total: int) -> None:
        pass

    @abstractmethod
    def dismiss_prompt(self) -> None:
        pass


class FileHost(DocumentHost):
    """Host without editor buffers: the file on disk is the buffer; prompt changes go out as JSON lines."""

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self._out = out
        self._lock = threading.Lock()

    def _emit(self, obj: Dict[str, Any]) -> None:
        out = self._out or sys.stdout
        with self._lock:
            out.write(json.dumps(obj, ensure_ascii=False) + "\n")
            out.flush()

    def has_unsaved(self, doc: TrackedDocument) -> bool:
        return False

    def save(self, doc: TrackedDocument) -> None:
        return None

    def get_text(self, doc: TrackedDocument) -> str:
        return doc.path.read_text(encoding="utf-8")

    def set_text(self, doc: TrackedDocument, text: str) -> None:
        doc.path.write_text(text, encoding="utf-8")

    def reload(self, doc: TrackedDocument) -> None:
        return None

    def notify(self, message: str) -> None:
        self._emit({"event": "notify", "message": message})

    def show_prompt(self, entry: PromptAllEntry, total: int) -> None:
        d = entry.to_json_dict()
        d.update({"event": "show", "total": total})
        self._emit(d)

    def dismiss_prompt(self) -> None:
        self._emit({"event": "dismiss"})


class AgentDocClient:
    """Runs the agent-doc CLI as a subprocess, the way an editor plugin does."""

    def __init__(self, root: Path, *, timeout_s: float = 30.0, argv0: Optional[List[str]] = None) -> None:
        self.root = root
        self.timeout_s = float(timeout_s)
        self.argv0 = list(argv0 or [sys.executable, "-m", "agent_doc"])

    def run(self, args: List[str]) -> Tuple[int, str]:
        argv = self.argv0 + list(args)
        try:
            p = subprocess.run(
                argv,
                cwd=str(self.root),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("agent-doc %s failed to run: %s", args[0], e)
            return 127, str(e)
        return int(p.returncode), (p.stdout or "")

    def poll_all(self) -> Optional[List[PromptAllEntry]]:
        code, out = self.run(["prompt", "--all"])
        if code != 0:
            return None
        try:
            raw = json.loads(out)
        except ValueError:
            logger.warning("prompt --all returned invalid json")
            return None
        if not isinstance(raw, list):
            return None
        entries: List[PromptAllEntry] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            try:
                info = PromptInfo.model_validate(
                    {k: item[k] for k in ("active", "question", "options", "selected") if k in item}
                )
                entries.append(
                    PromptAllEntry(session_id=str(item.get("session_id") or ""), file=str(item.get("file") or ""), info=info)
                )
            except ValidationError:
                logger.warning("skipping malformed prompt entry")
        return entries

    def answer(self, file: str, option: int) -> Tuple[bool, str]:
        code, out = self.run(["prompt", "--answer", str(option), file])
        return code == 0, out

    def focus(self, file: str) -> bool:
        code, _ = self.run(["focus", file])
        return code == 0

    def layout(self, files: List[str], split: str = "h") -> bool:
        code, _ = self.run(["layout", *files, "--split", split])
        return code == 0


class ReconcileLoop:
    def __init__(
        self,
        root: Path,
        host: DocumentHost,
        client: AgentDocClient,
        *,
        settings: Optional[Settings] = None,
        answer_async: bool = True,
    ) -> None:
        s = settings or Settings()
        self.root = root
        self.host = host
        self.client = client
        self.initial_delay_s = s.sync_initial_delay_s
        self.interval_s = s.sync_interval_s
        self.answer_async = answer_async
        self.state = PromptDisplayState()
        self._docs: Dict[str, TrackedDocument] = {}
        self._docs_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._prompt_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -- tracking ------------------------------------------------------------

    def track(self, path: Path) -> TrackedDocument:
        p = path if path.is_absolute() else self.root / path
        rel = relative_to_root(p, self.root)
        with self._docs_lock:
            doc = self._docs.get(rel)
            if doc is None:
                doc = TrackedDocument(rel=rel, path=p, mtime_ns=_mtime_ns(p))
                self._docs[rel] = doc
        return doc

    def tracked(self) -> List[TrackedDocument]:
        with self._docs_lock:
            return list(self._docs.values())

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="agent-doc-reconcile", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout)
        self._thread = None
        with self._prompt_lock:
            if self.state.current_key is not None:
                self.host.dismiss_prompt()
            self.state.reset()

    def request_stop(self) -> None:
        self._stop.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._stop.wait(timeout)

    def _run(self) -> None:
        if self._stop.wait(self.initial_delay_s):
            return
        while not self._stop.is_set():
            if self.tracked():
                try:
                    self.run_cycle()
                except Exception:
                    logger.exception("reconcile cycle failed")
            self._stop.wait(self.interval_s)

    # -- one cycle -----------------------------------------------------------

    def run_cycle(self) -> bool:
        """Run one cycle; False if another cycle is still in progress."""
        if not self._cycle_lock.acquire(blocking=False):
            return False
        try:
            self._save_unsaved()
            for doc in self.tracked():
                try:
                    self._refresh(doc)
                except Exception as e:
                    logger.warning("reconcile failed: %s", e, extra={"file": doc.rel})
            try:
                entries = self.client.poll_all()
            except Exception as e:
                logger.warning("prompt poll failed: %s", e)
                entries = None
            if entries is not None:
                try:
                    self._handle_prompts(entries)
                except Exception as e:
                    logger.warning("prompt display failed: %s", e)
            return True
        finally:
            self._cycle_lock.release()

    def _save_unsaved(self) -> None:
        for doc in self.tracked():
            try:
                if not self.host.has_unsaved(doc):
                    continue
                text = self.host.get_text(doc)
                self.host.save(doc)
                doc.last_saved = text
                doc.mtime_ns = _mtime_ns(doc.path)
            except Exception as e:
                # Best effort; prompt detection still runs.
                logger.warning("auto-save failed: %s", e, extra={"file": doc.rel})

    def _refresh(self, doc: TrackedDocument) -> None:
        stamp = _mtime_ns(doc.path)
        if stamp == doc.mtime_ns:
            return
        doc.mtime_ns = stamp
        self._merge_or_reload(doc)

    def _merge_or_reload(self, doc: TrackedDocument) -> None:
        disk = doc.path.read_text(encoding="utf-8")
        if not self.host.has_unsaved(doc):
            self.host.reload(doc)
            doc.last_saved = disk
            return

        local = self.host.get_text(doc)
        if local == disk:
            return
        base = doc.last_saved if doc.last_saved is not None else local
        merged = merge3(base, local, disk)
        if merged is not None:
            self.host.set_text(doc, merged)
            doc.last_saved = merged
            logger.info("merged external changes", extra={"file": doc.rel})
            return
        self.host.reload(doc)
        doc.last_saved = disk
        self.host.notify(f"{doc.rel} modified externally; your unsaved edits may need to be re-applied.")

    def _handle_prompts(self, entries: List[PromptAllEntry]) -> None:
        for e in entries:
            if e.file and (self.root / e.file).exists():
                self.track(Path(e.file))
        # Held across the host call so an answer cannot slip in between
        # deciding to show a prompt and showing it.
        with self._prompt_lock:
            update = self.state.update(entries)
            if update.show is not None:
                try:
                    self.host.show_prompt(update.show, update.total)
                except Exception:
                    # Not on screen; the next poll tries again.
                    self.state.withdraw()
                    raise
            elif update.dismiss:
                self.host.dismiss_prompt()

    # -- answering -----------------------------------------------------------

    def answer(self, option: int) -> bool:
        """Answer the displayed prompt; False when nothing is displayed."""
        with self._prompt_lock:
            entry = self.state.take_current()
            if entry is None:
                return False
            self.host.dismiss_prompt()
        if self.answer_async:
            threading.Thread(
                target=self._send_answer, args=(entry.file, option), name="agent-doc-answer", daemon=True
            ).start()
        else:
            self._send_answer(entry.file, option)
        return True

    def _send_answer(self, file: str, option: int) -> None:
        try:
            ok, out = self.client.answer(file, option)
        except Exception as e:
            self.host.notify(f"Failed to answer prompt: {e}")
            return
        if not ok:
            self.host.notify(f"agent-doc prompt --answer failed:\n{out.strip()}")
