import logging

from template_smd.templates.parser import (
    ConditionalNode,
    LoopNode,
    PartialNode,
    TextNode,
    VariableNode,
    parse,
    tokenize,
)


def test_plain_text_is_one_node():
    assert parse("<p>hello</p>") == [TextNode("<p>hello</p>")]


def test_empty_template():
    assert parse("") == []


def test_variables_and_defaults():
    nodes = parse("{{ name }}{{{ html }}}{{ missing || \"N/A\" }}{{{ raw || 'x' }}}")
    assert nodes == [
        VariableNode("name"),
        VariableNode("html", raw=True),
        VariableNode("missing", default="N/A"),
        VariableNode("raw", raw=True, default="x"),
    ]


def test_empty_default_literal():
    assert parse("{{ a || '' }}") == [VariableNode("a", default="")]


def test_loop_identifiers_are_paths():
    assert parse("{{@index}}{{this.name}}") == [VariableNode("@index"), VariableNode("this.name")]


def test_partial_name_is_trimmed():
    assert parse("{{>  layout/header-main  }}") == [PartialNode("layout/header-main")]


def test_unknown_tags_stay_literal():
    text = "{{ not a tag }} {{!comment}} {{ a || b }}"
    assert parse(text) == [TextNode(text)]


def test_conditional_with_else():
    nodes = parse("{{#if ok}}yes{{else}}no{{/if}}")
    assert nodes == [ConditionalNode("ok", False, [TextNode("yes")], [TextNode("no")])]


def test_unless_block():
    nodes = parse("{{#unless hidden}}shown{{/unless}}")
    assert nodes == [ConditionalNode("hidden", True, [TextNode("shown")], [])]


def test_loop_with_empty_branch():
    nodes = parse("{{#each items}}{{this}}{{ empty }}none{{/each}}")
    assert nodes == [LoopNode("items", [VariableNode("this")], [TextNode("none")])]


def test_nested_same_tag_blocks():
    nodes = parse("{{#if a}}A{{#if b}}B{{/if}}C{{/if}}")
    assert nodes == [
        ConditionalNode(
            "a",
            False,
            [TextNode("A"), ConditionalNode("b", False, [TextNode("B")], []), TextNode("C")],
            [],
        )
    ]


def test_empty_marker_only_splits_its_own_loop():
    nodes = parse("{{#each a}}{{#if x}}{{empty}}{{/if}}{{/each}}")
    loop = nodes[0]
    assert loop.empty == []
    assert loop.body[0].body == [VariableNode("empty")]


def test_marker_outside_block_is_a_placeholder():
    assert parse("{{else}}") == [VariableNode("else")]


def test_unclosed_block_is_kept_as_text(caplog):
    with caplog.at_level(logging.WARNING, logger="template_smd.templates.parser"):
        nodes = parse("line one\n{{#each items}}\n{{this}}")
    assert nodes == [TextNode("line one\n{{#each items}}\n"), VariableNode("this")]
    assert "Unclosed {{#each items}} on line 2" in caplog.text


def test_unclosed_block_keeps_its_marker():
    nodes = parse("{{#if a}}1{{else}}2")
    assert nodes == [TextNode("{{#if a}}1{{else}}2")]


def test_stray_close_tag(caplog):
    with caplog.at_level(logging.WARNING, logger="template_smd.templates.parser"):
        nodes = parse("text{{/if}}")
    assert nodes == [TextNode("text{{/if}}")]
    assert "Unexpected {{/if}} on line 1" in caplog.text


def test_mismatched_close_tag(caplog):
    with caplog.at_level(logging.WARNING, logger="template_smd.templates.parser"):
        nodes = parse("{{#if a}}\n{{/each}}{{/if}}")
    assert nodes == [ConditionalNode("a", False, [TextNode("\n{{/each}}")], [])]
    assert "Mismatched {{/each}} on line 2" in caplog.text


def test_mismatched_close_inside_unclosed_block():
    assert parse("{{#each xs}}{{/if}}") == [TextNode("{{#each xs}}{{/if}}")]


def test_nested_unclosed_blocks_unwind_in_order():
    nodes = parse("{{#if a}}A{{#each xs}}{{ x }}")
    assert nodes == [TextNode("{{#if a}}A{{#each xs}}"), VariableNode("x")]


def test_duplicate_else(caplog):
    with caplog.at_level(logging.WARNING, logger="template_smd.templates.parser"):
        nodes = parse("{{#if a}}1{{else}}2{{else}}3{{/if}}")
    assert nodes == [ConditionalNode("a", False, [TextNode("1")], [TextNode("2{{else}}3")])]
    assert "Duplicate {{else}}" in caplog.text


def test_tokenize_tracks_lines():
    tokens = list(tokenize("a\nb{{ x }}\n\n{{#if y}}{{/if}}"))
    assert [(t.kind, t.line) for t in tokens] == [
        ("text", 1),
        ("var", 2),
        ("text", 2),
        ("open", 4),
        ("close", 4),
    ]
