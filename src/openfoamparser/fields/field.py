"""
OpenFOAM Field Decoder

Decodes one field file (``0/U``, ``0.5/p``, ...) against the mesh it is
defined on. The header ``class`` fixes both where the values live and their
element type:

    volScalarField       -> one scalar per cell
    surfaceVectorField   -> one vector per internal face
    pointSymmTensorField -> one symmTensor per point

Each ``boundaryField`` entry keeps its condition ``type`` verbatim together
with its literal parameters; only ``value`` is decoded eagerly.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from openfoamparser.exceptions import FieldError
from openfoamparser.fields.typed_list import ElementType, TypedArray, decode_field_value
from openfoamparser.mesh.polymesh import BoundaryPatch, Mesh
from openfoamparser.parsing.nodes import Dictionary, Dimensions, Node, Word, as_text
from openfoamparser.parsing.parser import FoamFile

logger = logging.getLogger(__name__)

_FIELD_CLASS = re.compile(r"^(vol|surface|point)(Scalar|Vector|SymmTensor|Tensor|SphericalTensor)Field$")

# Patches of these types carry no values (2D front/back planes).
EMPTY_PATCH_TYPES = ("empty",)


class FieldGeometry(Enum):
    """Where the internal values of a field live."""
    VOLUME = "vol"
    SURFACE = "surface"
    POINT = "point"


def parse_field_class(class_name: Optional[str], source: Optional[str] = None) -> Tuple[FieldGeometry, ElementType]:
    """Split ``volVectorField`` into (VOLUME, VECTOR)."""
    match = _FIELD_CLASS.match(class_name or "")
    if not match:
        raise FieldError(f"unknown field class '{class_name}'", source=source)
    return FieldGeometry(match.group(1)), ElementType.from_name(match.group(2))


def internal_size(mesh: Mesh, geometry: FieldGeometry) -> int:
    if geometry is FieldGeometry.VOLUME:
        return mesh.num_cells
    if geometry is FieldGeometry.SURFACE:
        return mesh.num_internal_faces
    return mesh.num_points


def patch_size(mesh: Mesh, patch: BoundaryPatch, geometry: FieldGeometry) -> int:
    if patch.patch_type in EMPTY_PATCH_TYPES:
        return 0
    if geometry is FieldGeometry.POINT:
        return len(mesh.patch_points(patch.name))
    return patch.n_faces


@dataclass(frozen=True)
class BoundaryPatchValue:
    """Boundary condition of one patch: type, optional value, other literals."""
    patch_name: str
    condition_type: str
    element_type: ElementType
    value: Optional[TypedArray] = None
    parameters: Mapping[str, Node] = field(default_factory=dict, repr=False)
    matched_by: Optional[str] = None  # boundaryField key that supplied the entry
    source: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def parameter(self, name: str, default: Optional[Node] = None) -> Optional[Node]:
        """Raw parse tree node of a literal parameter (``inletValue``, ``gradient``, ...)."""
        return self.parameters.get(name, default)

    def decode_parameter(self, name: str, element_type: Optional[ElementType] = None) -> TypedArray:
        """
        Decode a value-like parameter with the field's element type.

        Raises:
            KeyError: if the condition has no such parameter
        """
        if name not in self.parameters:
            raise KeyError(name)
        return decode_field_value(self.parameters[name], element_type or self.element_type, self.source)


class Field:
    """
    Field values on a mesh.

    The mesh is referenced, not owned; any number of fields share one mesh.
    """

    def __init__(
        self,
        mesh: Mesh,
        name: str,
        field_class: str,
        geometry: FieldGeometry,
        element_type: ElementType,
        internal: TypedArray,
        boundary_field: Dict[str, BoundaryPatchValue],
        dimensions: Optional[Tuple[float, ...]] = None,
        source: Optional[str] = None,
    ):
        self.mesh = mesh
        self.name = name
        self.field_class = field_class
        self.geometry = geometry
        self.element_type = element_type
        self.internal = internal
        self.dimensions = dimensions
        self.source = source
        self._boundary_field = dict(boundary_field)

    @property
    def boundary_field(self) -> Mapping[str, BoundaryPatchValue]:
        return dict(self._boundary_field)

    @property
    def internal_values(self) -> np.ndarray:
        return self.internal.values

    @property
    def patch_names(self) -> List[str]:
        return list(self._boundary_field)

    def boundary(self, patch: str) -> BoundaryPatchValue:
        """Boundary condition of a patch; KeyError when the mesh has no such patch."""
        return self._boundary_field[patch]

    def patch_values(self, patch: str) -> Optional[np.ndarray]:
        """Per-face (per-point) values of a patch, None when the condition has no value."""
        entry = self.boundary(patch)
        return entry.value.values if entry.value is not None else None

    def condition_types(self) -> Dict[str, str]:
        return {name: entry.condition_type for name, entry in self._boundary_field.items()}

    def __len__(self) -> int:
        return len(self.internal)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {self.field_class}, {len(self.internal)} values, patches={self.patch_names})"


class _BoundaryMatcher:
    """
    Resolves the ``boundaryField`` entry used by each mesh patch.

    Precedence: exact patch name, then patch group (``inGroups``), then quoted
    keys as full-match regular expressions, the last declared first.
    """

    def __init__(self, entries: Dictionary, mesh: Mesh, use_patterns: bool, source: Optional[str]):
        self.entries = entries
        self.mesh = mesh
        self.use_patterns = use_patterns
        self.source = source
        self.groups = mesh.patch_groups if use_patterns else {}
        self.patterns = []
        if use_patterns:
            for key in entries:
                if entries.is_pattern(key):
                    try:
                        self.patterns.append((key, re.compile(key)))
                    except re.error as e:
                        raise FieldError(f"invalid boundary pattern '{key}': {e}", source=source) from e
            self.patterns.reverse()

    def check_keys(self) -> None:
        """Every plain key must name a patch (or a patch group)."""
        for key in self.entries:
            if self.mesh.has_patch(key) or key in self.groups:
                continue
            if self.use_patterns and self.entries.is_pattern(key):
                continue
            raise FieldError(f"boundary entry for unknown patch '{key}'", patch=key, source=self.source)

    def match(self, patch: BoundaryPatch) -> str:
        if patch.name in self.entries:
            return patch.name
        for group in reversed(patch.in_groups):
            if group in self.groups and group in self.entries:
                logger.debug(f"Patch {patch.name} uses group entry '{group}'")
                return group
        for key, pattern in self.patterns:
            if pattern.fullmatch(patch.name):
                logger.debug(f"Patch {patch.name} uses pattern entry '{key}'")
                return key
        raise FieldError(f"no boundary entry for patch {patch.name}", patch=patch.name, source=self.source)


def _expand_reference(node: Node, scope: Dictionary, source: Optional[str]) -> Node:
    """Replace a top-level ``$name`` reference (``value $internalField;``) by its value."""
    text = node.text if isinstance(node, Word) else None
    if text is None or not text.startswith("$"):
        return node
    name = text[1:].lstrip(":")
    if name not in scope:
        raise FieldError(f"unresolved reference '{text}'", source=source)
    return scope[name]


def _decode_patch(
    key: str,
    entry: Node,
    patch: BoundaryPatch,
    mesh: Mesh,
    geometry: FieldGeometry,
    element_type: ElementType,
    scope: Dictionary,
    source: Optional[str],
) -> BoundaryPatchValue:
    if not isinstance(entry, Dictionary):
        raise FieldError(f"boundary entry '{key}' is not a dictionary", patch=patch.name, source=source)

    condition_type = as_text(entry.get("type"))
    if condition_type is None:
        raise FieldError(f"boundary entry '{key}' has no type", patch=patch.name, source=source)

    value = None
    if "value" in entry:
        decoded = decode_field_value(_expand_reference(entry["value"], scope, source), element_type, source)
        value = decoded.broadcast(patch_size(mesh, patch, geometry), f"value of patch {patch.name}", source)

    parameters = {name: node for name, node in entry.items() if name not in ("type", "value")}
    return BoundaryPatchValue(
        patch_name=patch.name,
        condition_type=condition_type,
        element_type=element_type,
        value=value,
        parameters=parameters,
        matched_by=key,
        source=source,
    )


def decode_field(
    foam_file: FoamFile,
    mesh: Mesh,
    name: Optional[str] = None,
    boundary_patterns: bool = True,
) -> Field:
    """
    Decode a parsed field file against a mesh.

    Args:
        foam_file: parsed field file
        mesh: mesh the field is defined on
        name: field name, defaults to the header ``object``
        boundary_patterns: honour patch-group and quoted regex keys in ``boundaryField``

    The internal field holds one value per cell for ``vol`` fields and one per
    point for ``point`` fields. ``surface`` fields hold one value per internal
    face, not per mesh face: boundary face values live in ``boundaryField``, as
    in the ``phi`` files OpenFOAM writes.

    Raises:
        FieldError: unknown class, missing sections or boundary coverage mismatch
        SizeMismatch: a value disagrees with the mesh size it is defined on
    """
    source = foam_file.source
    field_class = foam_file.class_name
    geometry, element_type = parse_field_class(field_class, source)
    name = name or foam_file.object_name or "unnamed"

    dimensions = None
    dims_node = foam_file.get("dimensions")
    if isinstance(dims_node, Dimensions):
        dimensions = dims_node.exponents

    if "internalField" not in foam_file:
        raise FieldError("missing internalField", source=source)
    internal = decode_field_value(foam_file["internalField"], element_type, source)
    internal = internal.broadcast(internal_size(mesh, geometry), "internalField", source)

    entries = foam_file.get("boundaryField")
    if not isinstance(entries, Dictionary):
        raise FieldError("missing boundaryField dictionary", source=source)

    matcher = _BoundaryMatcher(entries, mesh, boundary_patterns, source)
    matcher.check_keys()

    boundary_field = {}
    for patch in mesh.boundary:
        key = matcher.match(patch)
        boundary_field[patch.name] = _decode_patch(
            key, entries[key], patch, mesh, geometry, element_type, foam_file.body, source)

    logger.info(f"Read field {name} ({field_class}): {len(internal)} values, {len(boundary_field)} patches")
    return Field(
        mesh=mesh,
        name=name,
        field_class=field_class,
        geometry=geometry,
        element_type=element_type,
        internal=internal,
        boundary_field=boundary_field,
        dimensions=dimensions,
        source=source,
    )
