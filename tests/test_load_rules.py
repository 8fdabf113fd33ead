import textwrap

import pytest

from inputrules import Literal
from inputrules.rules import (
    RulePackError,
    build_input_rule,
    builtin_pack_path,
    builtin_rules,
    load_input_rules,
    load_rule_pack,
    load_rule_specs,
)

from helpers import doc, h, make_session, p


def write_pack(tmp_path, body):
    path = tmp_path / "pack.yml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return str(path)


def test_builtin_packs_keep_file_order():
    names = [r.name for r in builtin_rules("typography", "markdown")]
    assert names[:3] == ["typography.em_dash", "typography.ellipsis", "typography.open_double_quote"]
    assert names[-5:] == [
        "markdown.blockquote",
        "markdown.ordered_list",
        "markdown.bullet_list",
        "markdown.code_block",
        "markdown.heading",
    ]


def test_typography_pack_matches_module_constants():
    from inputrules.rules import em_dash, ellipsis, smart_quotes
    rules = {r.name: r for r in builtin_rules("typography")}
    samples = ["a--", "wait...", "(\"", "say \"hi\"", "('", "it'"]
    for rule in [em_dash, ellipsis] + smart_quotes:
        loaded = rules[rule.name]
        assert loaded.handler == rule.handler
        for sample in samples:
            assert bool(loaded.pattern.search(sample)) == bool(rule.pattern.search(sample)), (rule.name, sample)


def test_text_rule_becomes_literal_handler():
    spec = load_rule_specs({"input_rules": [{"id": "arrow", "pattern": "->$", "replace": "→"}]})[0]
    rule = build_input_rule(spec)
    assert rule.name == "arrow"
    assert rule.handler == Literal("→")


def test_unknown_builtin_pack():
    with pytest.raises(RulePackError, match="available: markdown, typography"):
        builtin_pack_path("emoji")


@pytest.mark.parametrize("entry,message", [
    ({"id": "a", "kind": "magic", "pattern": "x$", "replace": "y"}, "unknown kind"),
    ({"id": "a", "pattern": "x$"}, "needs a 'replace'"),
    ({"id": "a", "replace": "y"}, "no pattern"),
    ({"id": "a", "kind": "wrap", "pattern": "x$"}, "needs a 'node_type'"),
    ({"id": "a", "kind": "wrap", "pattern": "x$", "node_type": "blockquote", "join": "sometimes"},
     "unknown join predicate"),
    ({"id": "a", "kind": "textblock_type", "pattern": "(x)$", "node_type": "heading",
      "attrs_from_groups": {"level": {"group": 1, "as": "float"}}}, "unknown conversion"),
    ("just a string", "must be a mapping"),
    ({"id": "a", "kind": "textblock_type", "pattern": "(x)$", "node_type": "heading",
      "attrs_from_groups": {"level": "1"}}, "must map to"),
    ({"id": "a", "kind": "wrap", "pattern": "x$", "node_type": "ordered_list", "attrs": ["order"]},
     "'attrs' must be a mapping"),
])
def test_malformed_entries_are_rejected(entry, message):
    with pytest.raises(RulePackError, match=message):
        load_rule_specs({"input_rules": [entry]})


def test_invalid_pattern_is_rejected():
    spec = load_rule_specs({"input_rules": [{"id": "bad", "pattern": "(x$", "replace": "y"}]})[0]
    with pytest.raises(RulePackError, match="invalid pattern"):
        build_input_rule(spec)


def test_empty_pack(tmp_path):
    path = write_pack(tmp_path, "")
    assert load_rule_pack(path) == {}
    assert load_input_rules(path) == []


def test_custom_pack_from_file(tmp_path):
    path = write_pack(tmp_path, """
        name: custom
        input_rules:
          - id: custom.arrow
            pattern: '->$'
            replace: "→"
          - id: custom.title
            kind: textblock_type
            pattern: '^!!\\s$'
            node_type: heading
            attrs:
              level: 1
    """)
    rules = load_input_rules(path)
    assert [r.name for r in rules] == ["custom.arrow", "custom.title"]

    session, _ = make_session(doc(p("a-")), rules)
    session.type_text(">")
    assert session.state.doc == doc(p("a→"))

    session, _ = make_session(doc(p("!!")), rules)
    session.type_text(" ")
    assert session.state.doc == doc(h(1))


def test_attrs_from_groups_convert_values(tmp_path):
    path = write_pack(tmp_path, """
        input_rules:
          - id: custom.level
            kind: textblock_type
            pattern: '^h(\\d)\\s$'
            node_type: heading
            attrs_from_groups:
              level: {group: 1, as: int}
    """)
    session, _ = make_session(doc(p("h4")), load_input_rules(path))
    session.type_text(" ")
    assert session.state.doc == doc(h(4))


def test_pack_shape_is_validated():
    with pytest.raises(RulePackError, match="must be a mapping"):
        load_rule_specs(["not", "a", "pack"])
    with pytest.raises(RulePackError, match="must be a list"):
        load_rule_specs({"input_rules": {"id": "a"}})
