"""Node tree produced by ``template_engine.parser``."""

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class TextNode:
    text: str


@dataclass(frozen=True)
class VariableNode:
    name: str


@dataclass(frozen=True)
class Condition:
    """
    ``{{#if name}}`` tests ``name`` for truthiness.
    ``{{#if (eq name "literal")}}`` compares ``name`` to ``literal``.
    An unparseable condition is kept with ``valid=False`` and is always false.
    """
    name: str
    literal: Optional[str] = None
    valid: bool = True

    @property
    def is_equality(self) -> bool:
        return self.literal is not None


@dataclass(frozen=True)
class IfNode:
    condition: Condition
    body: Tuple["Node", ...]
    else_body: Tuple["Node", ...] = ()


@dataclass(frozen=True)
class EachNode:
    name: str
    body: Tuple["Node", ...]
    else_body: Tuple["Node", ...] = ()   # rendered when the sequence is empty


Node = Union[TextNode, VariableNode, IfNode, EachNode]
