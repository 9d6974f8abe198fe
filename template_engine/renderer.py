"""
Render document templates against a flat render context.

The template is parsed into a node tree once and then walked. Blocks nest,
so an ``{{#each}}`` body is expanded per element before the conditionals and
variables inside it are resolved against that element's scope, and outer
conditionals and variables see the finished loop output.

Rendering never raises for missing names or broken block syntax, and values
are inserted without HTML escaping.
"""

from collections.abc import Iterable, Mapping
from typing import Any, List, Sequence

from models.billing_models import LineItemKind
from template_engine.context import ContextStack, fields_of, is_truthy, to_display
from template_engine.nodes import Condition, EachNode, IfNode, Node, TextNode, VariableNode
from template_engine.parser import parse


def _as_sequence(value: Any) -> List[Any]:
    if value is None or isinstance(value, (str, bytes, Mapping)):
        return []
    if isinstance(value, Iterable):
        return list(value)
    return []


def _is_header(fields: Mapping[str, Any]) -> bool:
    kind = fields.get("type", fields.get("kind"))
    return to_display(kind) == LineItemKind.HEADER.value


def evaluate_condition(condition: Condition, stack: ContextStack) -> bool:
    if not condition.valid:
        return False
    value = stack.lookup(condition.name)
    if condition.is_equality:
        return value is not None and to_display(value) == condition.literal
    return is_truthy(value)


class Renderer:
    def __init__(self, nodes: Sequence[Node]):
        self.nodes = nodes

    def render(self, context: Mapping[str, Any] | None = None) -> str:
        stack = ContextStack(context)
        return self._render_nodes(self.nodes, stack)

    def _render_nodes(self, nodes: Sequence[Node], stack: ContextStack) -> str:
        return "".join(self._render_node(node, stack) for node in nodes)

    def _render_node(self, node: Node, stack: ContextStack) -> str:
        if isinstance(node, TextNode):
            return node.text
        if isinstance(node, VariableNode):
            return to_display(stack.lookup(node.name))
        if isinstance(node, IfNode):
            branch = node.body if evaluate_condition(node.condition, stack) else node.else_body
            return self._render_nodes(branch, stack)
        if isinstance(node, EachNode):
            return self._render_each(node, stack)
        return ""

    def _render_each(self, node: EachNode, stack: ContextStack) -> str:
        elements = _as_sequence(stack.lookup(node.name))
        if not elements:
            return self._render_nodes(node.else_body, stack)

        output = []
        row_number = 0
        for element in elements:
            fields = fields_of(element)
            is_header = _is_header(fields)
            if not is_header:
                row_number += 1

            scope = dict(fields)
            scope["this"] = element
            scope["isHeader"] = is_header
            # headers never take a row number
            scope["itemIndex"] = "" if is_header else row_number

            with stack.scope(scope):
                output.append(self._render_nodes(node.body, stack))
        return "".join(output)


def compile_template(template_source: str) -> Renderer:
    return Renderer(parse(template_source))


def render(template_source: str, context: Mapping[str, Any] | None = None) -> str:
    """Render ``template_source`` against ``context``."""
    return compile_template(template_source).render(context)
