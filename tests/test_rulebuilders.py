import pytest

from inputrules import Accepted, Declined, textblock_type_input_rule, wrapping_input_rule
from inputrules.rules import builtin_rules

from helpers import blockquote, code_block, doc, h, li, make_session, ol, p, schema, ul


@pytest.fixture
def markdown():
    return builtin_rules("markdown")


def type_into(d, rules, text, pos=None):
    session, _ = make_session(d, rules, pos=pos)
    handled = session.type_text(text)
    return session, handled


# -----------------------------------------------------------------------------
# Wrapping
# -----------------------------------------------------------------------------

def test_bullet_list_wraps_paragraph(markdown):
    session, handled = type_into(doc(p("-")), markdown, " ")
    assert handled is True
    assert session.state.doc == doc(ul(li(p())))
    assert session.state.selection.head == 3


@pytest.mark.parametrize("marker", ["-", "+", "*"])
def test_bullet_markers(markdown, marker):
    session, _ = type_into(doc(p(marker)), markdown, " ")
    assert session.state.doc == doc(ul(li(p())))


def test_blockquote_wraps_paragraph(markdown):
    session, _ = type_into(doc(p(">")), markdown, " ")
    assert session.state.doc == doc(blockquote(p()))


def test_wrap_joins_list_above(markdown):
    session, _ = type_into(doc(ul(li(p("one"))), p("-")), markdown, " ")
    assert session.state.doc == doc(ul(li(p("one")), li(p())))
    assert session.state.selection.head == 10


def test_join_predicate_can_refuse():
    rule = wrapping_input_rule(r"^-\s$", "bullet_list", join_predicate=lambda match, node: False)
    session, _ = type_into(doc(ul(li(p("one"))), p("-")), [rule], " ")
    assert session.state.doc == doc(ul(li(p("one"))), ul(li(p())))


def test_join_predicate_sees_match_and_node():
    seen = []

    def predicate(match, node):
        seen.append((match.group(0), node.type.name, node.child_count))
        return True

    rule = wrapping_input_rule(r"^-\s$", "bullet_list", join_predicate=predicate)
    type_into(doc(ul(li(p("one"))), p("-")), [rule], " ")
    assert seen == [("- ", "bullet_list", 1)]


def test_no_join_with_different_list_type(markdown):
    session, _ = type_into(doc(ol(li(p("one"))), p("-")), markdown, " ")
    assert session.state.doc == doc(ol(li(p("one"))), ul(li(p())))


def test_ordered_list_takes_order_from_match(markdown):
    session, _ = type_into(doc(p("7.")), markdown, " ")
    assert session.state.doc == doc(ol(li(p()), order=7))


def test_ordered_list_continues_numbering(markdown):
    session, _ = type_into(doc(ol(li(p("one"))), p("2.")), markdown, " ")
    assert session.state.doc == doc(ol(li(p("one")), li(p())))


def test_ordered_list_with_gap_starts_new_list(markdown):
    session, _ = type_into(doc(ol(li(p("one"))), p("5.")), markdown, " ")
    assert session.state.doc == doc(ol(li(p("one"))), ol(li(p()), order=5))


def test_wrap_inside_blockquote(markdown):
    session, _ = type_into(doc(blockquote(p("*"))), markdown, " ")
    assert session.state.doc == doc(blockquote(ul(li(p()))))


def test_wrap_keeps_following_blocks(markdown):
    session, _ = type_into(doc(p(">"), p("after")), markdown, " ", pos=2)
    assert session.state.doc == doc(blockquote(p()), p("after"))


def test_static_attrs_and_node_type_object():
    rule = wrapping_input_rule(r"^#\)\s$", schema.nodes["ordered_list"], {"order": 3})
    session, _ = type_into(doc(p("#)")), [rule], " ")
    assert session.state.doc == doc(ol(li(p()), order=3))


def test_wrap_declines_when_schema_forbids():
    rule = wrapping_input_rule(r"^!\s$", "heading")
    session, handled = type_into(doc(p("!")), [rule], " ")
    assert handled is False
    assert session.state.doc == doc(p("! "))


def test_nested_list_not_allowed_as_first_child_of_item(markdown):
    session, handled = type_into(doc(ul(li(p("-")))), markdown, " ")
    assert handled is False
    assert session.state.doc == doc(ul(li(p("- "))))


# -----------------------------------------------------------------------------
# Retyping
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("hashes,level", [("#", 1), ("##", 2), ("######", 6)])
def test_heading_level_from_hashes(markdown, hashes, level):
    session, handled = type_into(doc(p(hashes)), markdown, " ")
    assert handled is True
    assert session.state.doc == doc(h(level))


def test_too_many_hashes_is_plain_text(markdown):
    session, handled = type_into(doc(p("#######")), markdown, " ")
    assert handled is False
    assert session.state.doc == doc(p("####### "))


def test_heading_inside_blockquote(markdown):
    session, _ = type_into(doc(blockquote(p("#"))), markdown, " ")
    assert session.state.doc == doc(blockquote(h(1)))


def test_retype_to_same_markup_only_removes_trigger(markdown):
    session, handled = type_into(doc(h(2, "##")), markdown, " ")
    assert handled is True
    assert session.state.doc == doc(h(2))


def test_code_block_from_backticks(markdown):
    session, handled = type_into(doc(p("``")), markdown, "`")
    assert handled is True
    assert session.state.doc == doc(code_block())
    assert session.state.selection.head == 1


def test_code_block_declined_where_parent_forbids_it(markdown):
    session, handled = type_into(doc(ul(li(p("``")))), markdown, "`")
    assert handled is False
    assert session.state.doc == doc(ul(li(p("```"))))


def test_retype_handler_declines_without_side_effects():
    rule = textblock_type_input_rule(r"^```$", "code_block")
    session, _ = make_session(doc(ul(li(p("``")))), [rule])
    state = session.state
    match = rule.pattern.search("```")
    result = rule.handler(state, match, 3, 5)
    assert isinstance(result, Declined)
    assert "code_block" in result.reason
    assert session.state is state


def test_retype_handler_accepts_with_transaction():
    rule = textblock_type_input_rule(r"^(#+)\s$", "heading", lambda m: {"level": len(m.group(1))})
    session, _ = make_session(doc(p("###")), [rule])
    match = rule.pattern.search("### ")
    result = rule.handler(session.state, match, 1, 4)
    assert isinstance(result, Accepted)
    assert result.tr.doc == doc(h(3))
    # Nothing dispatched yet.
    assert session.state.doc == doc(p("###"))
