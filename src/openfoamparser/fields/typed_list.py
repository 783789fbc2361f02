"""
Typed List Decoder

Interprets the value shorthands found in field and mesh files:

    uniform 3
    uniform (1 0 0)
    nonuniform List<scalar> 3 (0.1 0.2 0.3)
    List<vector> 2 ((0 0 0) (1 0 0))
    8{0}
    4(0 1 5 4)

into homogeneous numpy-backed arrays whose element type fixes how many
numeric components make up one element.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence as SequenceType, Tuple, Union

import numpy as np

from openfoamparser.exceptions import FieldError, ParseError, SizeMismatch
from openfoamparser.parsing.nodes import (
    Dimensions, ListNode, Node, Number, Sequence, String, UniformList, Word,
    node_offset,
)

logger = logging.getLogger(__name__)


class ElementType(Enum):
    """Element type of a typed list: (OpenFOAM name, components per element)."""
    LABEL = ("label", 1)
    SCALAR = ("scalar", 1)
    VECTOR = ("vector", 3)
    SPHERICAL_TENSOR = ("sphericalTensor", 1)
    SYMM_TENSOR = ("symmTensor", 6)
    TENSOR = ("tensor", 9)

    def __init__(self, foam_name: str, arity: int):
        self.foam_name = foam_name
        self.arity = arity

    @property
    def dtype(self):
        return np.int64 if self is ElementType.LABEL else np.float64

    @classmethod
    def from_name(cls, name: str) -> "ElementType":
        """Look up by OpenFOAM name, ignoring case (``Scalar`` in ``volScalarField``)."""
        for member in cls:
            if member.foam_name.lower() == name.lower():
                return member
        raise FieldError(f"unknown element type '{name}'")


_LIST_TYPE = re.compile(r"^List<(\w+)>$")
_SPECIAL_FLOATS = {
    "nan": math.nan, "-nan": math.nan,
    "inf": math.inf, "+inf": math.inf, "-inf": -math.inf,
    "infinity": math.inf, "-infinity": -math.inf,
}


@dataclass(frozen=True, eq=False)
class TypedArray:
    """
    Homogeneous array of scalar / vector / tensor elements.

    ``values`` has shape ``(n,)`` for one-component types and ``(n, arity)``
    otherwise. A uniform array stores exactly one element which consumers
    broadcast to the length their context requires.
    """
    element_type: ElementType
    values: np.ndarray
    uniform: bool = False

    def __post_init__(self):
        self.values.flags.writeable = False

    def __len__(self) -> int:
        return int(self.values.shape[0])

    def __getitem__(self, index):
        return self.values[index]

    @property
    def arity(self) -> int:
        return self.element_type.arity

    @property
    def value(self):
        """The single element of a uniform array."""
        if not self.uniform:
            raise ValueError("value is only defined for uniform arrays")
        element = self.values[0]
        return element.item() if np.ndim(element) == 0 else element

    def broadcast(self, length: int, what: str = "list", source: Optional[str] = None) -> "TypedArray":
        """Return a non-uniform array of ``length`` elements."""
        if self.uniform:
            values = np.repeat(self.values, length, axis=0)
            return TypedArray(self.element_type, values, uniform=False)
        if len(self) != length:
            raise SizeMismatch(f"{what} has wrong length", length, len(self), source)
        return self

    def to_numpy(self) -> np.ndarray:
        return np.array(self.values)


@dataclass(frozen=True)
class DimensionedValue:
    """Dimensioned quantity such as ``nu [0 2 -1 0 0 0 0] 1e-05``."""
    name: Optional[str]
    dimensions: Optional[Tuple[float, ...]]
    value: Union[float, np.ndarray] = field(compare=False)


def _number(node: Node, source: Optional[str]) -> Union[int, float]:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Word) and node.text.lower() in _SPECIAL_FLOATS:
        return _SPECIAL_FLOATS[node.text.lower()]
    raise ParseError("malformed list element", node_offset(node), expected="number",
                     found=_describe(node), source=source)


def _describe(node: Node) -> str:
    if isinstance(node, (Word, String)):
        return node.text
    if isinstance(node, Number):
        return str(node.value)
    return type(node).__name__


def _element(node: Node, element_type: ElementType, source: Optional[str]):
    """Decode one element into a number or a tuple of ``arity`` numbers."""
    arity = element_type.arity
    if arity == 1:
        value = _number(node, source)
        if element_type is ElementType.LABEL and not isinstance(value, int):
            raise ParseError("malformed label", node_offset(node), expected="integer",
                             found=str(value), source=source)
        return value
    if not isinstance(node, ListNode):
        raise ParseError(f"malformed {element_type.foam_name}", node_offset(node),
                         expected=f"({arity} components)", found=_describe(node), source=source)
    if len(node.items) != arity:
        raise SizeMismatch(f"{element_type.foam_name} component count", arity, len(node.items), source)
    return tuple(_number(item, source) for item in node.items)


def _infer_element_type(node: Node, source: Optional[str]) -> ElementType:
    if not isinstance(node, ListNode):
        return ElementType.SCALAR
    by_arity = {3: ElementType.VECTOR, 6: ElementType.SYMM_TENSOR, 9: ElementType.TENSOR}
    if len(node.items) not in by_arity:
        raise FieldError(f"cannot infer element type of a {len(node.items)}-component value", source=source)
    return by_arity[len(node.items)]


def _make_array(elements: List, element_type: ElementType, uniform: bool = False) -> TypedArray:
    if element_type.arity == 1:
        values = np.array(elements, dtype=element_type.dtype).reshape(-1)
    else:
        values = np.array(elements, dtype=element_type.dtype).reshape(-1, element_type.arity)
    return TypedArray(element_type, values, uniform=uniform)


def decode_list(node: Node, element_type: ElementType, source: Optional[str] = None) -> TypedArray:
    """
    Decode a (possibly count-prefixed) list or ``N{value}`` list.

    Raises:
        SizeMismatch: when the declared count differs from the element count
    """
    if isinstance(node, UniformList):
        element = _element(node.value, element_type, source)
        return _make_array([element] * node.count, element_type)

    if not isinstance(node, ListNode):
        raise ParseError("malformed list", node_offset(node), expected="list",
                         found=_describe(node), source=source)

    if node.count is not None and node.count != len(node.items):
        raise SizeMismatch("list length differs from declared count", node.count, len(node.items), source)

    elements = [_element(item, element_type, source) for item in node.items]
    return _make_array(elements, element_type)


def declared_element_type(type_name: str, source: Optional[str] = None) -> ElementType:
    """Map ``List<T>`` to its ElementType."""
    match = _LIST_TYPE.match(type_name)
    if not match:
        raise FieldError(f"unknown list type '{type_name}'", source=source)
    try:
        return ElementType.from_name(match.group(1))
    except FieldError as e:
        raise FieldError(e.message, source=source) from e


def _check_compatible(declared: ElementType, expected: Optional[ElementType], source: Optional[str]) -> ElementType:
    if expected is None or declared is expected:
        return declared
    if declared is ElementType.LABEL and expected is ElementType.SCALAR:
        return expected
    raise FieldError(
        f"list declared as List<{declared.foam_name}> but {expected.foam_name} values expected",
        source=source,
    )


def decode_field_value(
    node: Node,
    element_type: Optional[ElementType] = None,
    source: Optional[str] = None,
) -> TypedArray:
    """
    Decode an ``internalField`` / ``value`` style entry.

    Args:
        node: the parsed entry value
        element_type: element type implied by the caller's context; may be None
            only for ``List<T>`` forms that declare their own type
        source: file name used in error messages

    Returns:
        TypedArray; tagged uniform (length 1) for ``uniform <v>``
    """
    items: SequenceType[Node] = node.items if isinstance(node, Sequence) else (node,)

    if items and isinstance(items[0], Word) and items[0].text == "uniform":
        if len(items) != 2:
            raise ParseError("malformed uniform value", node_offset(items[0]),
                             expected="single value after 'uniform'", found=f"{len(items) - 1} items",
                             source=source)
        if element_type is None:
            element_type = _infer_element_type(items[1], source)
        element = _element(items[1], element_type, source)
        return _make_array([element], element_type, uniform=True)

    if items and isinstance(items[0], Word) and items[0].text == "nonuniform":
        items = items[1:]

    declared: Optional[ElementType] = None
    if items and isinstance(items[0], Word) and items[0].text.startswith("List<"):
        declared = declared_element_type(items[0].text, source)
        items = items[1:]

    if len(items) != 1 or not isinstance(items[0], (ListNode, UniformList)):
        raise ParseError("malformed field value", node_offset(node),
                         expected="'uniform' value or list", found=_describe(items[0]) if items else "nothing",
                         source=source)

    if declared is not None:
        element_type = _check_compatible(declared, element_type, source)
    if element_type is None:
        raise FieldError("element type of list cannot be determined", source=source)

    return decode_list(items[0], element_type, source)


def decode_label_lists(node: Node, source: Optional[str] = None) -> List[np.ndarray]:
    """Decode a list of count-prefixed label lists (``faceList`` / ``labelListList``)."""
    if not isinstance(node, ListNode):
        raise ParseError("malformed list of lists", node_offset(node), expected="list",
                         found=_describe(node), source=source)
    if node.count is not None and node.count != len(node.items):
        raise SizeMismatch("list length differs from declared count", node.count, len(node.items), source)
    return [decode_list(item, ElementType.LABEL, source).to_numpy() for item in node.items]


def decode_compact_label_lists(offsets_node: Node, labels_node: Node,
                               source: Optional[str] = None) -> List[np.ndarray]:
    """Decode the two-list ``faceCompactList`` layout into per-face label arrays."""
    offsets = decode_list(offsets_node, ElementType.LABEL, source).to_numpy()
    labels = decode_list(labels_node, ElementType.LABEL, source).to_numpy()
    if len(offsets) == 0:
        return []
    if offsets[0] != 0 or offsets[-1] != len(labels) or np.any(np.diff(offsets) < 0):
        raise SizeMismatch("compact list offsets do not cover the label list",
                           len(labels), int(offsets[-1]), source)
    return [labels[start:stop] for start, stop in zip(offsets[:-1], offsets[1:])]


def decode_dimensioned(node: Node, source: Optional[str] = None) -> DimensionedValue:
    """Decode ``[name] [dimensions] value`` into a DimensionedValue."""
    items = list(node.items) if isinstance(node, Sequence) else [node]
    name = None
    dimensions = None
    if items and isinstance(items[0], Word) and len(items) > 1:
        name = items.pop(0).text
    if items and isinstance(items[0], Dimensions):
        dimensions = items.pop(0).exponents
    if len(items) != 1:
        raise ParseError("malformed dimensioned value", node_offset(node),
                         expected="single value", found=f"{len(items)} items", source=source)
    value = items[0]
    if isinstance(value, ListNode):
        return DimensionedValue(name, dimensions, np.array([_number(v, source) for v in value.items], dtype=float))
    return DimensionedValue(name, dimensions, float(_number(value, source)))
