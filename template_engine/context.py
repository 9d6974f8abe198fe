from contextlib import contextmanager
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, List, Mapping

from pydantic import BaseModel


def get_field(value: Any, key: str) -> Any:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value.get(key)
    return getattr(value, key, None)


def fields_of(element: Any) -> dict:
    """The names an element of an ``{{#each}}`` loop exposes to its body."""
    if isinstance(element, Mapping):
        return dict(element)
    if isinstance(element, BaseModel):
        return element.model_dump()
    if hasattr(element, "__dict__"):
        return dict(vars(element))
    return {}


def to_display(value: Any) -> str:
    """String form used for ``{{name}}``. Missing values print as nothing."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value not in ("", "false", "0")
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    if isinstance(value, (Mapping, list, tuple, set)):
        return len(value) > 0
    return True


class ContextStack:
    """
    Name lookup for one render.

    The root scope is the render context; each ``{{#each}}`` iteration pushes
    a child scope whose names shadow everything below it.
    """

    def __init__(self, root: Mapping[str, Any] | None = None):
        self._scopes: List[Mapping[str, Any]] = [dict(root or {})]

    @property
    def depth(self) -> int:
        return len(self._scopes)

    @contextmanager
    def scope(self, values: Mapping[str, Any]) -> Iterator["ContextStack"]:
        self._scopes.append(values)
        try:
            yield self
        finally:
            self._scopes.pop()

    def lookup(self, name: str) -> Any:
        """Resolve ``name`` (or a dotted path), innermost scope first. Unknown names give None."""
        if not name:
            return None

        head, *rest = name.split(".")
        for scope in reversed(self._scopes):
            if head in scope:
                value = scope[head]
                break
        else:
            return None

        for part in rest:
            value = get_field(value, part)
            if value is None:
                return None
        return value
