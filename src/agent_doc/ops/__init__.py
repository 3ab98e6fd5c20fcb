"""
Command operations, one module per command family:
- route_ops: route a document to its live pane, auto-starting one when needed
- start_ops: bind the current pane and replace the process with the agent
- claim_ops: bind a document to an explicitly addressed pane
- focus_ops: bring a document's pane to the front
- layout_ops: mirror an editor split layout across panes
- resync_ops: drop registry entries whose panes are gone
- prompt_ops: detect and answer interactive prompts in panes

Every operation receives its registry and pane controller explicitly.
"""

from __future__ import annotations
