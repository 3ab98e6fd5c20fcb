from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger("agent_doc.merge")


def merge3(base: str, ours: str, theirs: str, *, timeout_s: float = 10.0) -> Optional[str]:
    """3-way merge with `git merge-file -p`; None on conflict or when git is unusable."""
    with tempfile.TemporaryDirectory(prefix="agent-doc-merge-") as td:
        d = Path(td)
        paths = {"ours": d / "ours.md", "base": d / "base.md", "theirs": d / "theirs.md"}
        paths["ours"].write_text(ours, encoding="utf-8")
        paths["base"].write_text(base, encoding="utf-8")
        paths["theirs"].write_text(theirs, encoding="utf-8")
        argv = ["git", "merge-file", "-p", str(paths["ours"]), str(paths["base"]), str(paths["theirs"])]
        try:
            p = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout_s,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("git merge-file unavailable: %s", e)
            return None
    if p.returncode != 0:
        # >0 is the number of conflicts, <0 an error.
        logger.info("merge conflict (git merge-file exit %s)", p.returncode)
        return None
    return p.stdout.decode("utf-8", errors="replace")
