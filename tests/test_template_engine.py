"""Tests for the template parser and renderer."""

from types import SimpleNamespace

import pytest

from models.billing_models import InvoiceStatus
from template_engine.context import ContextStack, is_truthy
from template_engine.nodes import EachNode, IfNode, TextNode, VariableNode
from template_engine.parser import parse, parse_condition
from template_engine.renderer import render


def test_plain_text_round_trips() -> None:
    source = "<p>No tags here, just { braces } and }} closers</p>"
    assert render(source, {}) == source


def test_variables_and_missing_names() -> None:
    assert render("Hello {{ name }}!", {"name": "Asha"}) == "Hello Asha!"
    assert render("[{{missing}}]", {}) == "[]"


def test_values_are_not_html_escaped() -> None:
    assert render("{{html}}", {"html": "<b>bold</b> & co"}) == "<b>bold</b> & co"


def test_dotted_names_walk_mappings_and_attributes() -> None:
    context = {"contact": {"name": "Acme"}, "company": SimpleNamespace(city="Pune")}
    assert render("{{contact.name}} / {{company.city}} / {{contact.nope.deeper}}", context) == "Acme / Pune / "


def test_if_else_round_trip() -> None:
    assert render("{{#if x}}A{{else}}B{{/if}}", {"x": True}) == "A"
    assert render("{{#if x}}A{{else}}B{{/if}}", {"x": False}) == "B"
    assert render("{{#if x}}A{{#else}}B{{/if}}", {}) == "B"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("", False),
        ("false", False),
        ("0", False),
        ("no", True),
        (0, False),
        (2, True),
        ([], False),
        (["x"], True),
        (None, False),
        (InvoiceStatus.DRAFT, True),
    ],
)
def test_truthiness(value, expected) -> None:
    assert is_truthy(value) is expected


def test_eq_condition_compares_against_literal() -> None:
    template = '{{#if (eq status "PAID")}}paid{{else}}open{{/if}}'
    assert render(template, {"status": "PAID"}) == "paid"
    assert render(template, {"status": InvoiceStatus.PAID}) == "paid"
    assert render(template, {"status": "SENT"}) == "open"
    assert render(template, {}) == "open"
    assert render("{{#if (eq status 'SENT')}}yes{{/if}}", {"status": "SENT"}) == "yes"


def test_each_header_and_item_round_trip() -> None:
    template = '{{#each items}}{{#if (eq type "HEADER")}}H{{else}}I{{/if}}{{/each}}'
    items = [{"type": "HEADER"}, {"type": "ITEM"}, {"type": "ITEM"}]
    assert render(template, {"items": items}) == "HII"


def test_item_index_skips_headers() -> None:
    template = "{{#each items}}[{{itemIndex}}:{{name}}]{{/each}}"
    items = [
        {"type": "HEADER", "name": "Design"},
        {"type": "ITEM", "name": "Logo"},
        {"type": "ITEM", "name": "Banner"},
        {"type": "HEADER", "name": "Hours"},
        {"type": "TIMESHEET", "name": "Work"},
    ]
    assert render(template, {"items": items}) == "[:Design][1:Logo][2:Banner][:Hours][3:Work]"


def test_each_scope_shadows_and_falls_back_to_outer_names() -> None:
    template = "{{#each items}}{{name}}@{{currency}}{{#if isHeader}}!{{/if}};{{/each}}{{name}}"
    context = {"name": "outer", "currency": "INR", "items": [{"name": "a"}, {"name": "b", "type": "HEADER"}]}
    assert render(template, context) == "a@INR;b@INR!;outer"


def test_each_else_renders_for_empty_or_missing_sequences() -> None:
    template = "{{#each items}}{{name}}{{else}}none{{/each}}"
    assert render(template, {"items": []}) == "none"
    assert render(template, {}) == "none"
    assert render(template, {"items": "not a list"}) == "none"


def test_each_over_models_and_this() -> None:
    items = [SimpleNamespace(name="x"), SimpleNamespace(name="y")]
    assert render("{{#each items}}{{name}}{{/each}}", {"items": items}) == "xy"
    assert render("{{#each tags}}<{{this}}>{{/each}}", {"tags": ["a", "b"]}) == "<a><b>"


def test_nested_blocks() -> None:
    template = (
        "{{#each groups}}{{title}}:"
        "{{#each rows}}{{#if (eq kind \"x\")}}X{{else}}{{value}}{{/if}}{{/each}};"
        "{{/each}}"
    )
    context = {
        "groups": [
            {"title": "g1", "rows": [{"kind": "x"}, {"kind": "y", "value": 7}]},
            {"title": "g2", "rows": []},
        ]
    }
    assert render(template, context) == "g1:X7;g2:;"


def test_stray_closers_and_else_are_dropped() -> None:
    assert render("a{{/if}}b{{/each}}c", {}) == "abc"
    assert render("a{{else}}b", {}) == "ab"


def test_unclosed_block_keeps_its_content() -> None:
    assert render("before {{#if flag}}inside {{name}}", {"name": "N"}) == "before inside N"
    assert render("{{#each items}}row", {"items": [1, 2]}) == "row"


def test_block_closed_by_wrong_tag_keeps_content() -> None:
    assert render("{{#if a}}x{{/each}}y", {}) == "xy"


def test_unterminated_tag_is_literal() -> None:
    assert render("total {{ total", {"total": 5}) == "total {{ total"


def test_comments_and_unknown_blocks_are_dropped() -> None:
    assert render("a{{! a note }}b", {}) == "ab"
    assert render("{{#unless x}}y{{/unless}}", {}) == "y"


def test_invalid_condition_is_false() -> None:
    assert render("{{#if (gt a 1)}}yes{{else}}no{{/if}}", {"a": 5}) == "no"
    assert parse_condition("(gt a 1)").valid is False


def test_parse_builds_node_tree() -> None:
    nodes = parse("Hi {{name}}{{#if x}}A{{else}}B{{/if}}{{#each items}}{{this}}{{/each}}")
    assert nodes[0] == TextNode("Hi ")
    assert nodes[1] == VariableNode("name")
    assert isinstance(nodes[2], IfNode)
    assert nodes[2].body == (TextNode("A"),)
    assert nodes[2].else_body == (TextNode("B"),)
    assert isinstance(nodes[3], EachNode)
    assert nodes[3].name == "items"


def test_context_stack_scopes_pop_after_use() -> None:
    stack = ContextStack({"a": 1})
    with stack.scope({"a": 2, "b": 3}):
        assert stack.depth == 2
        assert stack.lookup("a") == 2
    assert stack.depth == 1
    assert stack.lookup("a") == 1
    assert stack.lookup("b") is None
