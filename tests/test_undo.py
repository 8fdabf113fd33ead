from inputrules import InputRule, undo_input_rule, wrapping_input_rule
from inputrules.rules import builtin_rules, em_dash, smart_quotes

from helpers import blockquote, doc, em, h, li, make_session, ol, p, schema, ul


def test_nothing_to_undo():
    session, _ = make_session(doc(p("hello")), [em_dash])
    dispatched = []
    assert undo_input_rule(session.state) is False
    assert undo_input_rule(session.state, dispatched.append) is False
    assert dispatched == []


def test_undo_without_dispatch_only_reports():
    session, plugin = make_session(doc(p("hello-")), [em_dash])
    session.type_text("-")
    state = session.state
    assert undo_input_rule(state) is True
    assert session.state is state
    assert state.plugin_state(plugin) is not None


def test_undo_em_dash_restores_typed_text():
    session, _ = make_session(doc(p("hello-")), [em_dash])
    session.type_text("-")
    assert session.run_command(undo_input_rule) is True
    assert session.state.doc == doc(p("hello--"))
    # One undo only.
    assert undo_input_rule(session.state) is False


def test_undo_after_unrelated_input_is_unavailable():
    session, _ = make_session(doc(p("hello-")), [em_dash])
    session.type_text("-")
    session.type_text("x")
    assert session.run_command(undo_input_rule) is False
    assert session.state.doc == doc(p("hello—x"))


def test_undo_restores_marks():
    session, _ = make_session(doc(p(em("hello-"))), [em_dash])
    session.type_text("-")
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(p(em("hello--")))


def test_undo_restores_text_without_marks_after_marked_run():
    link = schema.mark("link", {"href": "https://example.com"})
    session, _ = make_session(doc(p(schema.text("site", [link]), " -")), [em_dash])
    session.type_text("-")
    assert session.state.doc == doc(p(schema.text("site", [link]), " —"))
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(p(schema.text("site", [link]), " --"))


def test_undo_smart_quote_with_group():
    session, _ = make_session(doc(p("(")), smart_quotes)
    session.type_text("'")
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(p("('"))


def test_undo_wrapping_with_join_inverts_every_step():
    before = doc(ul(li(p("one"))), p("-"))
    session, plugin = make_session(before, builtin_rules("markdown"))
    session.type_text(" ")
    assert session.state.doc == doc(ul(li(p("one")), li(p())))
    assert len(session.state.plugin_state(plugin).transform.steps) == 3
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(ul(li(p("one"))), p("- "))


def test_undo_heading():
    session, _ = make_session(doc(p("##")), builtin_rules("markdown"))
    session.type_text(" ")
    assert session.state.doc == doc(h(2))
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(p("## "))


def test_undo_ordered_list_keeps_following_content():
    session, _ = make_session(doc(p("3."), p("after")), builtin_rules("markdown"), pos=3)
    session.type_text(" ")
    assert session.state.doc == doc(ol(li(p()), order=3), p("after"))
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(p("3. "), p("after"))


def test_undo_after_composition_recheck_deletes_nothing_extra():
    pending = []
    session, _ = make_session(doc(p("a-")), [em_dash], schedule=pending.append)
    session.composition_start()
    session.type_text("-")
    session.composition_end()
    pending.pop()()
    assert session.state.doc == doc(p("a—"))
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(p("a--"))


def test_undo_of_custom_multi_step_rule():
    def shout(state, match, start, end):
        tr = state.tr.delete(start, end)
        return tr.insert(start, schema.text("HEY"))

    session, _ = make_session(doc(p("say hey")), [InputRule(r"hey!$", shout)])
    session.type_text("!")
    assert session.state.doc == doc(p("say HEY"))
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(p("say hey!"))


def test_undo_blockquote_inside_list():
    rule = wrapping_input_rule(r"^>\s$", "blockquote")
    session, _ = make_session(doc(ul(li(p("a"), p(">")))), [rule])
    session.type_text(" ")
    assert session.state.doc == doc(ul(li(p("a"), blockquote(p()))))
    session.run_command(undo_input_rule)
    assert session.state.doc == doc(ul(li(p("a"), p("> "))))
