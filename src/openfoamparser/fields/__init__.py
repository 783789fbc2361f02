"""Typed list and field decoding."""

# typed_list has to be loaded before field: field pulls in the mesh package,
# which itself depends on typed_list.
from .typed_list import (
    DimensionedValue,
    ElementType,
    TypedArray,
    decode_dimensioned,
    decode_field_value,
    decode_list,
)
from .field import (
    BoundaryPatchValue,
    Field,
    FieldGeometry,
    decode_field,
    parse_field_class,
)

__all__ = [
    'BoundaryPatchValue',
    'DimensionedValue',
    'ElementType',
    'Field',
    'FieldGeometry',
    'TypedArray',
    'decode_dimensioned',
    'decode_field',
    'decode_field_value',
    'decode_list',
    'parse_field_class',
]
