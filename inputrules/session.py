"""
Editor Session

Minimal host view around an EditorState: owns the current state, routes
text input and composition events to plugins, and falls back to plain
text insertion when no plugin handles the input.
"""
from __future__ import annotations
from typing import Callable, List, Optional
import asyncio
import logging

from inputrules.model.state import EditorState, TextSelection, Transaction

logger = logging.getLogger(__name__)

Command = Callable[[EditorState, Optional[Callable[[Transaction], None]]], bool]


class EditorSession:
    def __init__(self, state: EditorState, schedule: Optional[Callable[[Callable[[], None]], object]] = None):
        self.state = state
        self.composing = False
        self._schedule = schedule
        self._listeners: List[Callable[[Transaction, EditorState], None]] = []

    # -------------------------------------------------------------------------
    # State updates
    # -------------------------------------------------------------------------

    def dispatch(self, tr: Transaction) -> None:
        self.state = self.state.apply(tr)
        for listener in self._listeners:
            listener(tr, self.state)

    def on_dispatch(self, listener: Callable[[Transaction, EditorState], None]) -> None:
        self._listeners.append(listener)

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` after the current event has been handled."""
        if self._schedule is not None:
            self._schedule(callback)
        else:
            asyncio.get_running_loop().call_soon(callback)

    def set_selection(self, anchor: int, head: Optional[int] = None) -> None:
        head = anchor if head is None else head
        self.dispatch(self.state.tr.set_selection(TextSelection(anchor, head)))

    def run_command(self, command: Command) -> bool:
        return command(self.state, self.dispatch)

    # -------------------------------------------------------------------------
    # Input events
    # -------------------------------------------------------------------------

    def handle_text_input(self, from_: int, to: int, text: str) -> bool:
        for plugin in self.state.plugins:
            handler = getattr(plugin, "handle_text_input", None)
            if handler is not None and handler(self, from_, to, text):
                return True
        return False

    def type_text(self, text: str) -> bool:
        """Input ``text`` over the selection. True when a plugin handled it."""
        sel = self.state.selection
        if self.handle_text_input(sel.from_, sel.to, text):
            return True
        self.dispatch(self.state.tr.insert_text(text, sel.from_, sel.to))
        return False

    def split_block(self) -> None:
        """Enter key: split the textblock at the cursor."""
        sel = self.state.selection
        tr = self.state.tr
        if not sel.empty:
            tr.delete(sel.from_, sel.to)
        rp = tr.doc.resolve(tr.selection.head)
        type_after = None if rp.parent.type.name == "paragraph" else tr.doc.type.schema.nodes.get("paragraph")
        tr.split(rp.pos, type_after if rp.parent_offset == rp.parent.content_size else None)
        self.dispatch(tr)

    def composition_start(self) -> None:
        self.composing = True

    def composition_end(self) -> None:
        self.composing = False
        for plugin in self.state.plugins:
            hook = getattr(plugin, "handle_composition_end", None)
            if hook is not None:
                hook(self)
