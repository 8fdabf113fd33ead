"""
Input Rules

Input rules are regular expressions describing a piece of text that, when
typed, causes something to happen: two dashes become an em dash, a
paragraph starting with "> " gets wrapped in a blockquote, and so on.

On every text input the engine builds a window of the text right before
the cursor (plus the text being typed), tries the rules in order and
applies the first one whose handler accepts. The applied transaction is
remembered until the next state change so ``undo_input_rule`` can revert
it in one step.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern, Sequence, Union, TYPE_CHECKING
import logging
import re

from inputrules.config import InputRulesConfig
from inputrules.model.state import EditorState, Transaction
from inputrules.model.transform import Transform

if TYPE_CHECKING:
    from inputrules.session import EditorSession

logger = logging.getLogger(__name__)


# =============================================================================
# Handler results
# =============================================================================

@dataclass(frozen=True)
class Accepted:
    tr: Transaction


@dataclass(frozen=True)
class Declined:
    reason: str = ""


HandlerResult = Union[Accepted, Declined]

# (state, match, start, end) -> Transaction | None | HandlerResult
HandlerFn = Callable[[EditorState, "re.Match[str]", int, int], object]


# =============================================================================
# Handlers
# =============================================================================

@dataclass(frozen=True)
class Literal:
    """Replace the matched text, or the text matched by the first group,
    with ``template``."""
    template: str

    def __call__(self, state: EditorState, match: "re.Match[str]", start: int, end: int) -> HandlerResult:
        insert = self.template
        group = match.group(1) if match.re.groups else None
        if group:
            whole = match.group(0)
            offset = whole.rfind(group)
            insert += whole[offset + len(group):]
            start += offset
            cut_off = start - end
            if cut_off > 0:
                insert = whole[offset - cut_off:offset] + insert
                start = end
        return Accepted(state.tr.insert_text(insert, start, end))


@dataclass(frozen=True)
class Computed:
    fn: HandlerFn

    def __call__(self, state: EditorState, match: "re.Match[str]", start: int, end: int) -> HandlerResult:
        result = self.fn(state, match, start, end)
        if isinstance(result, (Accepted, Declined)):
            return result
        if result is None:
            return Declined("handler returned no transaction")
        if isinstance(result, Transaction):
            return Accepted(result)
        raise TypeError(f"Input rule handler returned {type(result).__name__}, expected a Transaction or None")


RuleHandler = Union[Literal, Computed]


@dataclass(frozen=True)
class InputRule:
    """A pattern plus the edit it produces.

    ``pattern`` should usually end with ``$``; a match only counts when it
    ends exactly at the cursor. Start it with ``^`` when the rule should only fire
    at the start of a textblock. ``handler`` is either a replacement
    string or a callable ``(state, match, start, end)`` returning a
    transaction, or None to let the next rule have a go.
    """
    pattern: Pattern[str]
    handler: RuleHandler
    name: str = ""

    def __init__(self, pattern: Union[str, Pattern[str]], handler: Union[str, HandlerFn, RuleHandler],
                 name: str = ""):
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        if isinstance(handler, str):
            handler = Literal(handler)
        elif not isinstance(handler, (Literal, Computed)):
            if not callable(handler):
                raise TypeError(f"Input rule handler must be a string or callable, got {type(handler).__name__}")
            handler = Computed(handler)
        object.__setattr__(self, "pattern", pattern)
        object.__setattr__(self, "handler", handler)
        object.__setattr__(self, "name", name or pattern.pattern)


# =============================================================================
# Engine
# =============================================================================

@dataclass(frozen=True)
class FiredRuleRecord:
    """What the last rule fire did, kept for ``undo_input_rule``."""
    transform: Transform
    trigger_start: int
    trigger_end: int
    text: str
    rule_name: str = field(default="", compare=False)


class InputRules:
    """Editor plugin that runs input rules on text input.

    Its per-state value is the FiredRuleRecord of the rule that fired in
    the latest transaction, or None.
    """
    is_input_rules = True

    def __init__(self, rules: Sequence[InputRule], config: Optional[InputRulesConfig] = None):
        self.rules: List[InputRule] = list(rules)
        self.config = config or InputRulesConfig()

    def __repr__(self) -> str:
        return f"<InputRules {len(self.rules)} rules>"

    # -------------------------------------------------------------------------
    # Plugin state
    # -------------------------------------------------------------------------

    def init(self, state: Optional[EditorState] = None) -> Optional[FiredRuleRecord]:
        return None

    def apply(self, tr: Transaction, previous: Optional[FiredRuleRecord]) -> Optional[FiredRuleRecord]:
        stored = tr.get_meta(self)
        if stored is not None:
            return stored
        return None if tr.selection_set or tr.doc_changed else previous

    # -------------------------------------------------------------------------
    # Host hooks
    # -------------------------------------------------------------------------

    def handle_text_input(self, session: "EditorSession", from_: int, to: int, text: str) -> bool:
        return self.run(session, from_, to, text)

    def handle_composition_end(self, session: "EditorSession") -> None:
        # Runs after the composition end handlers have finished.
        session.schedule(lambda: self._run_at_cursor(session))

    def _run_at_cursor(self, session: "EditorSession") -> None:
        cursor = session.state.cursor()
        if cursor is not None:
            self.run(session, cursor.pos, cursor.pos, "")

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------

    def text_before(self, state: EditorState, from_: int) -> Optional[str]:
        """Lookback window ending at ``from_``, or None inside code."""
        rp = state.doc.resolve(from_)
        parent = rp.parent
        if parent.type.spec.code:
            return None
        start = max(0, rp.parent_offset - self.config.max_match)
        return parent.text_between(start, rp.parent_offset, None, self.config.placeholder)

    def run(self, session: "EditorSession", from_: int, to: int, text: str) -> bool:
        if session.composing:
            return False
        state = session.state
        before = self.text_before(state, from_)
        if before is None:
            logger.debug(f"Skipping input rules inside code block at {from_}")
            return False
        window = before + text
        for rule in self.rules:
            match = rule.pattern.search(window)
            # "$" also matches before a trailing newline; the match must end at the cursor.
            if match is None or match.end() != len(window):
                continue
            start = from_ - (len(match.group(0)) - len(text))
            result = rule.handler(state, match, start, to)
            if isinstance(result, Declined):
                logger.debug(f"Rule {rule.name!r} matched {match.group(0)!r} but declined: {result.reason}")
                continue
            tr = result.tr
            tr.set_meta(self, FiredRuleRecord(tr, from_, to, text, rule.name))
            session.dispatch(tr)
            logger.info(f"Input rule {rule.name!r} fired on {match.group(0)!r}")
            return True
        return False


# =============================================================================
# Undo
# =============================================================================

def undo_input_rule(state: EditorState,
                    dispatch: Optional[Callable[[Transaction], None]] = None) -> bool:
    """Undo the input rule that fired in the last transaction, if any.

    Without ``dispatch`` this only reports whether there is something to
    undo.
    """
    for plugin in state.plugins:
        if not getattr(plugin, "is_input_rules", False):
            continue
        record: Optional[FiredRuleRecord] = state.plugin_state(plugin)
        if record is None:
            continue
        if dispatch is not None:
            tr = state.tr
            applied = record.transform
            for step, doc in zip(reversed(applied.steps), reversed(applied.docs)):
                tr.step(step.invert(doc))
            marks = tr.doc.resolve(record.trigger_start).marks()
            if record.text:
                tr.replace_with(record.trigger_start, record.trigger_end, state.schema.text(record.text, marks))
            else:
                tr.delete(record.trigger_start, record.trigger_end)
            logger.info(f"Undoing input rule {record.rule_name!r}")
            dispatch(tr)
        return True
    return False
