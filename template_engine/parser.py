"""
Recursive-descent parser for the document template language.

Supported tags:
    {{name}}                                  variable
    {{#if cond}} ... {{else}} ... {{/if}}     conditional ({{#else}} also accepted)
    {{#each name}} ... {{else}} ... {{/each}} iteration
    {{!comment}}                              dropped

``cond`` is a bare name or ``(eq name "literal")``.

Malformed input never raises. Stray ``{{/...}}`` and ``{{else}}`` tags are
dropped, an opener that is never closed is dropped and its body is kept as
ordinary content, and a ``{{`` with no matching ``}}`` stays literal text.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from template_engine.nodes import Condition, EachNode, IfNode, Node, TextNode, VariableNode
from utils.logger import get_logger

logger = get_logger(__name__)

# Tag bodies may not contain another "{{" or "}}"
TAG_PATTERN = re.compile(r"\{\{((?:(?!\{\{|\}\}).)*)\}\}", re.DOTALL)
BLOCK_OPEN_PATTERN = re.compile(r"^#(\w+)\s*(.*)$", re.DOTALL)
EQ_PATTERN = re.compile(r"""^\(\s*eq\s+([^\s()"']+)\s+(?:"([^"]*)"|'([^']*)')\s*\)$""")
NAME_PATTERN = re.compile(r"^[^\s()\"']+$")

TEXT = "text"
VARIABLE = "variable"
OPEN = "open"
ELSE = "else"
CLOSE = "close"

BLOCK_KEYWORDS = ("if", "each")


@dataclass(frozen=True)
class Token:
    kind: str
    value: str = ""
    argument: str = ""


def _classify_tag(content: str) -> Optional[Token]:
    content = content.strip()
    if not content or content.startswith("!"):
        return None
    if content in ("else", "#else"):
        return Token(ELSE)
    if content.startswith("/"):
        return Token(CLOSE, content[1:].strip())
    if content.startswith("#"):
        match = BLOCK_OPEN_PATTERN.match(content)
        if match and match.group(1) in BLOCK_KEYWORDS:
            return Token(OPEN, match.group(1), match.group(2).strip())
        logger.debug(f"Dropping unsupported block tag {{{{{content}}}}}")
        return None
    return Token(VARIABLE, content)


def tokenize(source: str) -> List[Token]:
    tokens = []
    position = 0
    for match in TAG_PATTERN.finditer(source):
        if match.start() > position:
            tokens.append(Token(TEXT, source[position:match.start()]))
        token = _classify_tag(match.group(1))
        if token is not None:
            tokens.append(token)
        position = match.end()
    if position < len(source):
        tokens.append(Token(TEXT, source[position:]))
    return tokens


def parse_condition(text: str) -> Condition:
    text = text.strip()
    match = EQ_PATTERN.match(text)
    if match:
        literal = match.group(2) if match.group(2) is not None else match.group(3)
        return Condition(name=match.group(1), literal=literal)
    if NAME_PATTERN.match(text):
        return Condition(name=text)
    return Condition(name=text, valid=False)


class _Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def parse(self) -> List[Node]:
        nodes, _ = self._parse_body(())
        return nodes

    def _parse_body(self, open_blocks: Tuple[str, ...]) -> Tuple[List[Node], Optional[Token]]:
        """
        Collect nodes until an ``else`` or a closer that belongs to one of
        ``open_blocks``. That terminator is returned without being consumed.
        """
        nodes: List[Node] = []
        while self.pos < len(self.tokens):
            token = self.tokens[self.pos]

            if token.kind == TEXT:
                nodes.append(TextNode(token.value))
            elif token.kind == VARIABLE:
                nodes.append(VariableNode(token.value))
            elif token.kind == ELSE:
                if open_blocks:
                    return nodes, token
                logger.debug("Dropping {{else}} outside any block")
            elif token.kind == CLOSE:
                if token.value in open_blocks:
                    return nodes, token
                logger.debug(f"Dropping unmatched {{{{/{token.value}}}}}")
            elif token.kind == OPEN:
                self.pos += 1
                nodes.extend(self._parse_block(token, open_blocks))
                continue

            self.pos += 1
        return nodes, None

    def _parse_block(self, opener: Token, open_blocks: Tuple[str, ...]) -> List[Node]:
        keyword = opener.value
        inner_blocks = open_blocks + (keyword,)

        body, terminator = self._parse_body(inner_blocks)
        else_body: List[Node] = []
        while terminator is not None and terminator.kind == ELSE:
            # a second {{else}} in the same block just continues the else branch
            self.pos += 1
            more, terminator = self._parse_body(inner_blocks)
            else_body.extend(more)

        if terminator is not None and terminator.value == keyword:
            self.pos += 1
            if keyword == "if":
                return [IfNode(parse_condition(opener.argument), tuple(body), tuple(else_body))]
            return [EachNode(opener.argument, tuple(body), tuple(else_body))]

        # Never closed (or closed by an outer block's tag): drop the opener, keep its content
        logger.debug(f"Unclosed {{{{#{keyword} {opener.argument}}}}}; keeping its content inline")
        return body + else_body


def parse(source: str) -> List[Node]:
    """Parse template source into a list of nodes. Never raises on malformed blocks."""
    return _Parser(tokenize(source or "")).parse()
