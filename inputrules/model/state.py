"""
Editor state and transactions.

An EditorState bundles a document, a text selection and the state of each
plugin. States are never mutated: ``state.apply(tr)`` builds the next one
and asks every plugin to compute its next value from the transaction.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from inputrules.model.node import Node
from inputrules.model.resolvedpos import ResolvedPos
from inputrules.model.schema import Schema
from inputrules.model.transform import Mapping, Transform


@dataclass(frozen=True)
class TextSelection:
    anchor: int
    head: int

    @classmethod
    def cursor(cls, pos: int) -> "TextSelection":
        return cls(pos, pos)

    @property
    def from_(self) -> int:
        return min(self.anchor, self.head)

    @property
    def to(self) -> int:
        return max(self.anchor, self.head)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head

    def cursor_pos(self) -> Optional[int]:
        """Head position when the selection is a plain cursor."""
        return self.head if self.empty else None

    def map(self, doc: Node, mapping: Mapping) -> "TextSelection":
        size = doc.content_size
        anchor = min(max(mapping.map(self.anchor), 0), size)
        head = min(max(mapping.map(self.head), 0), size)
        return TextSelection(anchor, head)


class Plugin(Protocol):
    def init(self, state: "EditorState") -> Any: ...

    def apply(self, tr: "Transaction", value: Any) -> Any: ...


class Transaction(Transform):
    def __init__(self, state: "EditorState"):
        super().__init__(state.doc)
        self._selection = state.selection
        self._selection_for = 0
        self.selection_set = False
        self.stored_marks = None
        self._meta: Dict[Any, Any] = {}

    @property
    def selection(self) -> TextSelection:
        if self._selection_for < len(self.steps):
            self._selection = self._selection.map(self.doc, self.mapping.slice(self._selection_for))
            self._selection_for = len(self.steps)
        return self._selection

    def set_selection(self, selection: TextSelection) -> "Transaction":
        self._selection = selection
        self._selection_for = len(self.steps)
        self.selection_set = True
        return self

    def set_meta(self, key: Any, value: Any) -> "Transaction":
        self._meta[key] = value
        return self

    def get_meta(self, key: Any) -> Any:
        return self._meta.get(key)

    def insert_text(self, text: str, from_: Optional[int] = None, to: Optional[int] = None) -> "Transaction":
        """Replace ``[from_, to)`` (default: the selection) with text that
        inherits the marks at ``from_``."""
        if from_ is None:
            from_, to = self.selection.from_, self.selection.to
        to = from_ if to is None else to
        if not text:
            self.delete(from_, to)
            return self
        marks = self.stored_marks
        if marks is None:
            rp = self.doc.resolve(from_)
            marks = rp.marks() if from_ == to else (rp.marks_across(self.doc.resolve(to)) or ())
        self.replace_with(from_, to, self.doc.type.schema.text(text, marks))
        return self


class EditorState:
    def __init__(self, doc: Node, selection: TextSelection, plugins: Sequence[Plugin] = (),
                 plugin_states: Optional[Dict[int, Any]] = None):
        self.doc = doc
        self.selection = selection
        self.plugins: Tuple[Plugin, ...] = tuple(plugins)
        self._plugin_states: Dict[int, Any] = dict(plugin_states or {})

    @classmethod
    def create(cls, doc: Node, selection: Optional[TextSelection] = None,
               plugins: Sequence[Plugin] = ()) -> "EditorState":
        state = cls(doc, selection or TextSelection.cursor(0), plugins)
        for plugin in state.plugins:
            state._plugin_states[id(plugin)] = plugin.init(state)
        return state

    @property
    def schema(self) -> Schema:
        return self.doc.type.schema

    @property
    def tr(self) -> Transaction:
        return Transaction(self)

    def cursor(self) -> Optional[ResolvedPos]:
        pos = self.selection.cursor_pos()
        return None if pos is None else self.doc.resolve(pos)

    def plugin_state(self, plugin: Plugin) -> Any:
        return self._plugin_states.get(id(plugin))

    def apply(self, tr: Transaction) -> "EditorState":
        states = {id(p): p.apply(tr, self._plugin_states.get(id(p))) for p in self.plugins}
        return EditorState(tr.doc, tr.selection, self.plugins, states)
