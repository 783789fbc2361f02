"""
Parse tree nodes for OpenFOAM dictionaries.

The shape of a value in an OpenFOAM file (scalar, list, dictionary, ...) is
only known from context, so the parser produces a small set of tagged node
types and every consumer checks for the shape it expects.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, FrozenSet, Iterator, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class Number:
    """Integer or floating point literal."""
    value: Union[int, float]
    offset: int = field(default=-1, compare=False)

    @property
    def is_integer(self) -> bool:
        return isinstance(self.value, int)


@dataclass(frozen=True)
class Word:
    """Bare word: keyword, identifier, type name or ``$`` reference."""
    text: str
    offset: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class String:
    """Double-quoted string, stored without quotes."""
    text: str
    offset: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class Dimensions:
    """Dimension set such as ``[0 1 -1 0 0 0 0]``."""
    values: Tuple[Union[int, float, str], ...]
    offset: int = field(default=-1, compare=False)

    @property
    def exponents(self) -> Tuple[float, ...]:
        return tuple(float(v) for v in self.values if not isinstance(v, str))


@dataclass(frozen=True)
class ListNode:
    """Parenthesised list, optionally prefixed by its declared length."""
    items: Tuple["Node", ...]
    count: Optional[int] = None
    offset: int = field(default=-1, compare=False)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)


@dataclass(frozen=True)
class UniformList:
    """Compact ``N{value}`` list: ``value`` repeated ``count`` times."""
    count: int
    value: "Node"
    offset: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class Sequence:
    """Several items forming one entry value, e.g. ``uniform (0 0 0)``."""
    items: Tuple["Node", ...]
    offset: int = field(default=-1, compare=False)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)


@dataclass(frozen=True)
class Dictionary:
    """
    Ordered mapping of unique keys to nodes.

    ``name`` is set for dictionaries that appear as named list elements
    (``inlet { ... }`` inside the ``boundary`` file list). ``patterns`` holds
    the keys that were written as quoted strings, which OpenFOAM treats as
    regular expressions.
    """
    entries: Mapping[str, "Node"] = field(default_factory=dict)
    name: Optional[str] = None
    patterns: FrozenSet[str] = frozenset()
    offset: int = field(default=-1, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __getitem__(self, key: str) -> "Node":
        return self.entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str, default: Any = None) -> Any:
        return self.entries.get(key, default)

    def keys(self):
        return self.entries.keys()

    def items(self):
        return self.entries.items()

    def is_pattern(self, key: str) -> bool:
        return key in self.patterns


Node = Union[Number, Word, String, Dimensions, ListNode, UniformList, Sequence, Dictionary]


def node_offset(node: Node) -> int:
    return getattr(node, "offset", -1)


def as_text(node: Optional[Node]) -> Optional[str]:
    """Return the text of a Word or String node, None for anything else."""
    if isinstance(node, (Word, String)):
        return node.text
    return None


def to_python(node: Node) -> Any:
    """Convert a node to plain Python values (dicts, lists, numbers, strings)."""
    if isinstance(node, Number):
        return node.value
    if isinstance(node, (Word, String)):
        return node.text
    if isinstance(node, Dimensions):
        return list(node.values)
    if isinstance(node, (ListNode, Sequence)):
        return [to_python(item) for item in node.items]
    if isinstance(node, UniformList):
        return [to_python(node.value)] * node.count
    if isinstance(node, Dictionary):
        return {key: to_python(value) for key, value in node.items()}
    raise TypeError(f"Not a parse tree node: {node!r}")
