import os
import subprocess
import unittest
from pathlib import Path
from unittest.mock import patch


def _done(argv, code=0, out="", err=""):
    return subprocess.CompletedProcess(argv, code, stdout=out, stderr=err)


class TestTmuxRunner(unittest.TestCase):
    def test_socket_isolation_args(self) -> None:
        from agent_doc.runners.tmux import Tmux

        t = Tmux(socket="agent-doc-test")
        with patch("agent_doc.runners.tmux.subprocess.run", return_value=_done([], out="%1\n%2\n")) as run:
            panes = t.live_panes()
        self.assertEqual(panes, {"%1", "%2"})
        argv = run.call_args[0][0]
        self.assertEqual(argv[:5], ["tmux", "-L", "agent-doc-test", "-f", "/dev/null"])
        self.assertEqual(run.call_args[1]["timeout"], 5.0)

    def test_no_server_means_no_live_panes(self) -> None:
        from agent_doc.runners.tmux import Tmux

        t = Tmux()
        with patch("agent_doc.runners.tmux.subprocess.run", return_value=_done([], code=1, err="no server running")):
            self.assertEqual(t.live_panes(), set())
            self.assertFalse(t.is_alive("%1"))
            self.assertFalse(t.running())

    def test_send_keys_is_two_calls(self) -> None:
        from agent_doc.runners.tmux import Tmux

        t = Tmux(sleep=lambda _s: None)
        with patch("agent_doc.runners.tmux.subprocess.run", return_value=_done([])) as run:
            t.send_keys("%3", "/agent-doc plan.md")
        argvs = [c[0][0] for c in run.call_args_list]
        self.assertEqual(argvs[0], ["tmux", "send-keys", "-t", "%3", "-l", "/agent-doc plan.md"])
        self.assertEqual(argvs[1], ["tmux", "send-keys", "-t", "%3", "Enter"])

    def test_nonzero_exit_raises(self) -> None:
        from agent_doc.kernel.errors import SubprocessError
        from agent_doc.runners.tmux import Tmux

        t = Tmux()
        with patch("agent_doc.runners.tmux.subprocess.run", return_value=_done([], code=1, err="can't find pane: %9")):
            with self.assertRaises(SubprocessError) as cm:
                t.capture("%9")
        self.assertEqual(cm.exception.returncode, 1)
        self.assertIn("can't find pane", cm.exception.stderr)

    def test_timeout_and_missing_binary(self) -> None:
        from agent_doc.kernel.errors import ConfigurationError, SubprocessError
        from agent_doc.runners.tmux import Tmux

        t = Tmux(timeout_s=0.5)
        with patch("agent_doc.runners.tmux.subprocess.run", side_effect=subprocess.TimeoutExpired(["tmux"], 0.5)):
            with self.assertRaises(SubprocessError) as cm:
                t.capture("%1")
        self.assertEqual(cm.exception.returncode, 124)
        with patch("agent_doc.runners.tmux.subprocess.run", side_effect=FileNotFoundError("tmux")):
            with self.assertRaises(ConfigurationError):
                t.capture("%1")

    def test_auto_start_cascade(self) -> None:
        from agent_doc.runners.tmux import Tmux

        def fake_run(codes):
            def run(argv, **kwargs):
                cmd = argv[1]
                if cmd == "has-session":
                    name = argv[3] if len(argv) > 3 else ""
                    return _done(argv, code=codes.get(("has-session", name), 1))
                return _done(argv, out="%7\n")
            return run

        t = Tmux()
        cwd = Path("/work")
        with patch("agent_doc.runners.tmux.subprocess.run", side_effect=fake_run({})) as run:
            self.assertEqual(t.auto_start("claude", cwd), ("%7", "session"))
        self.assertEqual(run.call_args_list[-1][0][0][1], "new-session")

        with patch("agent_doc.runners.tmux.subprocess.run", side_effect=fake_run({("has-session", ""): 0})) as run:
            self.assertEqual(t.auto_start("claude", cwd), ("%7", "session"))
        self.assertIn("-s", run.call_args_list[-1][0][0])

        codes = {("has-session", ""): 0, ("has-session", "claude"): 0}
        with patch("agent_doc.runners.tmux.subprocess.run", side_effect=fake_run(codes)) as run:
            self.assertEqual(t.auto_start("claude", cwd), ("%7", "window"))
        self.assertEqual(run.call_args_list[-1][0][0][1], "new-window")

    def test_join_pane_split(self) -> None:
        from agent_doc.runners.tmux import Tmux

        t = Tmux()
        with patch("agent_doc.runners.tmux.subprocess.run", return_value=_done([])) as run:
            t.join_pane("%2", "%1", "v")
        self.assertEqual(run.call_args[0][0], ["tmux", "join-pane", "-s", "%2", "-t", "%1", "-v"])
        with self.assertRaises(ValueError):
            t.join_pane("%2", "%1", "diagonal")

    def test_focus_selects_window_then_pane(self) -> None:
        from agent_doc.runners.tmux import Tmux

        t = Tmux()
        with patch("agent_doc.runners.tmux.subprocess.run", return_value=_done([])) as run:
            t.focus("%4")
        self.assertEqual([c[0][0][1] for c in run.call_args_list], ["select-window", "select-pane"])

    def test_current_pane(self) -> None:
        from agent_doc.kernel.errors import ConfigurationError
        from agent_doc.runners.tmux import Tmux

        with patch.dict(os.environ, {"TMUX_PANE": "%12"}):
            self.assertEqual(Tmux.current_pane(), "%12")
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TMUX_PANE", None)
            with self.assertRaises(ConfigurationError):
                Tmux.current_pane()


if __name__ == "__main__":
    unittest.main()
