"""Declarative extraction rules keyed by the shape of a leaf's path.

A path is a tuple of segments: `str` for map keys, `int` for list indexes.
Patterns are written as dotted keys with bracketed indexes:

    content.images.*            any key of the `images` map
    content.pricing[*].image    `image` of any element of `pricing`
    content.pricing[0].image    only the first element
    **.image                    `image` at any depth
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from migrator.media.models import BlobReference, DocumentValue

Path = tuple[str | int, ...]

_DEEP = "**"
_ANY_KEY = "*"
_ANY_INDEX = "[*]"
_SEGMENT = re.compile(r"^(?P<key>[^\[\]]*)(?P<indexes>(\[(\*|\d+)\])*)$")
_INDEX = re.compile(r"\[(\*|\d+)\]")


def format_path(path: Path) -> str:
    """Render a path as `content.pricing[0].image`."""
    out = ""
    for segment in path:
        if isinstance(segment, int):
            out += f"[{segment}]"
        else:
            out += f".{segment}" if out else str(segment)
    return out


class PathPattern:
    """Compiled path pattern."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self._tokens = self._parse(pattern)

    def __repr__(self) -> str:
        return f"PathPattern({self.pattern!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PathPattern) and other.pattern == self.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def matches(self, path: Path) -> bool:
        return self._match(0, path)

    def _match(self, pos: int, path: Sequence[str | int]) -> bool:
        if pos == len(self._tokens):
            return not path
        token = self._tokens[pos]
        if token == _DEEP:
            return any(self._match(pos + 1, path[i:]) for i in range(len(path) + 1))
        if not path:
            return False
        if not self._match_segment(token, path[0]):
            return False
        return self._match(pos + 1, path[1:])

    @staticmethod
    def _match_segment(token: str | int, segment: str | int) -> bool:
        if isinstance(segment, int):
            return token == _ANY_INDEX or token == segment
        if token == _ANY_KEY:
            return True
        return isinstance(token, str) and token not in (_ANY_INDEX, _DEEP) and token == segment

    @staticmethod
    def _parse(pattern: str) -> list[str | int]:
        if not pattern:
            raise ValueError("path pattern must not be empty")
        tokens: list[str | int] = []
        for part in pattern.split("."):
            match = _SEGMENT.match(part)
            if match is None:
                raise ValueError(f"invalid path pattern segment '{part}' in '{pattern}'")
            key = match.group("key")
            if key:
                tokens.append(key)
            elif not match.group("indexes"):
                raise ValueError(f"empty segment in path pattern '{pattern}'")
            for index in _INDEX.findall(match.group("indexes")):
                tokens.append(_ANY_INDEX if index == "*" else int(index))
        return tokens


@dataclass(frozen=True)
class LeafContext:
    """Where a string leaf sits inside its document."""

    path: Path
    parent: Any

    @property
    def key(self) -> str | int | None:
        return self.path[-1] if self.path else None

    @property
    def index(self) -> int | None:
        """The nearest list index on the path, if any."""
        for segment in reversed(self.path):
            if isinstance(segment, int):
                return segment
        return None


def public_path(ref: BlobReference) -> DocumentValue:
    return ref.public_path


@dataclass(frozen=True)
class ExtractionRule:
    """Match a leaf by path shape and rewrite it to point at an extracted blob.

    `strict` rules also report matched leaves that are neither an embedded
    image nor an already-migrated reference.
    """

    name: str
    pattern: PathPattern
    prefix: Callable[[LeafContext], str]
    rewrite: Callable[[BlobReference], DocumentValue] = public_path
    strict: bool = False

    def matches(self, path: Path) -> bool:
        return self.pattern.matches(path)


def key_prefix(context: LeafContext) -> str:
    return str(context.key)


def indexed_prefix(label: str) -> Callable[[LeafContext], str]:
    """Prefix `<label>_<index>` from the nearest list index."""

    def _prefix(context: LeafContext) -> str:
        return f"{label}_{context.index if context.index is not None else 0}"

    return _prefix


def plan_name_prefix(context: LeafContext) -> str:
    """`pricing-<plan name>`, or `pricing_<index>` for unnamed plans."""
    parent = context.parent
    name = parent.get("name") if isinstance(parent, dict) else None
    if isinstance(name, str) and name.strip():
        return f"pricing-{name}"
    return indexed_prefix("pricing")(context)


def default_rules() -> list[ExtractionRule]:
    """Rules for the site-content documents stored in the metadata collection."""
    return [
        ExtractionRule(
            name="images",
            pattern=PathPattern("content.images.*"),
            prefix=key_prefix,
        ),
        ExtractionRule(
            name="pricing",
            pattern=PathPattern("content.pricing[*].image"),
            prefix=plan_name_prefix,
            strict=True,
        ),
        ExtractionRule(
            name="features",
            pattern=PathPattern("content.features[*].image"),
            prefix=indexed_prefix("feature"),
        ),
        ExtractionRule(
            name="products",
            pattern=PathPattern("content.products[*].image"),
            prefix=indexed_prefix("product"),
        ),
    ]
