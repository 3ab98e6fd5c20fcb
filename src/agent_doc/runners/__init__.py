from __future__ import annotations

from . import tmux
from .tmux import Tmux

__all__ = ["Tmux", "tmux"]
