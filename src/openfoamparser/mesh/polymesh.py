"""
OpenFOAM polyMesh Reconstruction

Builds a queryable mesh from the files of a ``polyMesh`` directory:
- Points (vertices) in 3D space
- Faces with point connectivity (``faceList`` or ``faceCompactList``)
- Cell-face connectivity (owner/neighbour)
- Boundary patch definitions

Internal faces form a contiguous prefix of the face range and the boundary
patches tile the rest of it. The consistency of the separately stored owner,
neighbour and boundary files is checked while the mesh is assembled; cell
adjacency itself is derived lazily (see ``connectivity``).
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from openfoamparser.exceptions import SizeMismatch, StructuralError
from openfoamparser.fields.typed_list import (
    ElementType, decode_compact_label_lists, decode_field_value,
    decode_label_lists, decode_list,
)
from openfoamparser.io.sources import ByteSource, LocalFileSource, PathLike, join_path
from openfoamparser.mesh.connectivity import ConnectivityManager, boundary_id
from openfoamparser.parsing.nodes import (
    Dictionary, ListNode, Node, Number, Sequence as SequenceNode, as_text,
)
from openfoamparser.parsing.parser import FoamFile, parse_bytes

logger = logging.getLogger(__name__)

MESH_FILES = ("points", "faces", "owner", "neighbour", "boundary")

_NOTE_COUNT = re.compile(r"(nPoints|nCells|nFaces|nInternalFaces)\s*:\s*(\d+)")


@dataclass(frozen=True)
class BoundaryPatch:
    """Boundary patch information from the ``boundary`` file."""

    name: str
    patch_type: str  # wall, patch, symmetry, empty, cyclic, ...
    n_faces: int
    start_face: int
    index: int = 0
    in_groups: Tuple[str, ...] = ()
    parameters: Mapping[str, Node] = field(default_factory=dict, compare=False, repr=False)

    @property
    def end_face(self) -> int:
        return self.start_face + self.n_faces

    @property
    def faces(self) -> range:
        return range(self.start_face, self.end_face)

    @property
    def boundary_id(self) -> int:
        """Negative id standing in for the missing neighbour cell."""
        return boundary_id(self.index)


class Mesh:
    """
    Immutable polyMesh topology.

    Owns the point, face, owner and neighbour arrays and the patch list;
    fields built on the mesh only refer to it.
    """

    def __init__(
        self,
        points: np.ndarray,
        faces: Sequence[np.ndarray],
        owner: np.ndarray,
        neighbour: np.ndarray,
        boundary: Sequence[BoundaryPatch],
        source: Optional[str] = None,
    ):
        self._points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        self._faces = tuple(np.asarray(face, dtype=np.int64) for face in faces)
        self._owner = np.asarray(owner, dtype=np.int64)
        self._neighbour = np.asarray(neighbour, dtype=np.int64)
        self._boundary = tuple(boundary)
        self.source = source

        for array in (self._points, self._owner, self._neighbour) + self._faces:
            array.flags.writeable = False

        self._validate()

        if len(self._owner) or len(self._neighbour):
            max_owner = int(self._owner.max()) if len(self._owner) else -1
            max_neighbour = int(self._neighbour.max()) if len(self._neighbour) else -1
            self._n_cells = max(max_owner, max_neighbour) + 1
        else:
            self._n_cells = 0

        self._patches_by_name = {patch.name: patch for patch in self._boundary}
        self._connectivity = ConnectivityManager(self)

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def _error(self, message: str, patch: Optional[str] = None) -> StructuralError:
        return StructuralError(message, patch=patch, source=self.source)

    def _validate(self) -> None:
        """Check owner/neighbour/boundary consistency."""
        n_faces = len(self._faces)
        n_owner = len(self._owner)
        n_internal = len(self._neighbour)

        if n_internal > n_owner:
            raise self._error(f"neighbour longer than owner ({n_internal} > {n_owner} entries)")
        if n_owner != n_faces:
            raise self._error(f"owner has {n_owner} entries but the mesh has {n_faces} faces")

        if n_owner and self._owner.min() < 0:
            face = int(np.argmin(self._owner))
            raise self._error(f"face {face} has negative owner {int(self._owner[face])}")
        if n_internal and self._neighbour.min() < 0:
            face = int(np.argmin(self._neighbour))
            raise self._error(f"internal face {face} has negative neighbour {int(self._neighbour[face])}")

        same = np.nonzero(self._owner[:n_internal] == self._neighbour)[0]
        if len(same):
            face = int(same[0])
            raise self._error(f"internal face {face} has owner and neighbour {int(self._owner[face])}")

        n_points = len(self._points)
        for face_id, face in enumerate(self._faces):
            if len(face) and (face.min() < 0 or face.max() >= n_points):
                raise self._error(f"face {face_id} references a point outside [0, {n_points})")

        self._validate_boundary(n_internal, n_faces)

    def _validate_boundary(self, n_internal: int, n_faces: int) -> None:
        seen = set()
        expected_start = n_internal
        previous_start = n_internal
        for patch in self._boundary:
            if patch.name in seen:
                raise self._error(f"duplicate patch '{patch.name}'", patch.name)
            seen.add(patch.name)
            if patch.n_faces < 0:
                raise self._error(f"patch '{patch.name}' has negative nFaces", patch.name)
            if patch.start_face < previous_start:
                raise self._error(
                    f"patch '{patch.name}' starts at face {patch.start_face}, "
                    f"before the preceding patch (face {previous_start})", patch.name)
            if patch.start_face != expected_start:
                raise self._error(
                    f"patch '{patch.name}' starts at face {patch.start_face}, expected {expected_start}",
                    patch.name)
            previous_start = patch.start_face
            expected_start = patch.end_face

        if expected_start != n_faces:
            if self._boundary:
                last = self._boundary[-1]
                raise self._error(
                    f"last patch '{last.name}' ends at face {last.end_face} but the mesh has {n_faces} faces",
                    last.name)
            raise self._error(f"no boundary patches cover faces {n_internal}..{n_faces - 1}")

    # ------------------------------------------------------------------ #
    # Arrays and sizes
    # ------------------------------------------------------------------ #

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def faces(self) -> Tuple[np.ndarray, ...]:
        return self._faces

    @property
    def owner(self) -> np.ndarray:
        return self._owner

    @property
    def neighbour(self) -> np.ndarray:
        return self._neighbour

    @property
    def boundary(self) -> Tuple[BoundaryPatch, ...]:
        return self._boundary

    @property
    def num_points(self) -> int:
        return len(self._points)

    @property
    def num_faces(self) -> int:
        return len(self._faces)

    @property
    def num_internal_faces(self) -> int:
        return len(self._neighbour)

    @property
    def num_boundary_faces(self) -> int:
        return self.num_faces - self.num_internal_faces

    @property
    def num_cells(self) -> int:
        return self._n_cells

    @property
    def patch_names(self) -> List[str]:
        return [patch.name for patch in self._boundary]

    @property
    def patch_groups(self) -> Dict[str, List[str]]:
        """Group name -> member patch names, from ``inGroups``."""
        groups: Dict[str, List[str]] = {}
        for patch in self._boundary:
            for group in patch.in_groups:
                groups.setdefault(group, []).append(patch.name)
        return groups

    @property
    def connectivity(self) -> ConnectivityManager:
        return self._connectivity

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def patch(self, name: str) -> BoundaryPatch:
        """Return the named patch; KeyError when absent."""
        return self._patches_by_name[name]

    def has_patch(self, name: str) -> bool:
        return name in self._patches_by_name

    def face_cells(self, face_id: int) -> Tuple[int, int]:
        """(owner, neighbour) of a face; neighbour is -1 on boundary faces."""
        if not 0 <= face_id < self.num_faces:
            raise IndexError(f"face id {face_id} out of range [0, {self.num_faces})")
        owner = int(self._owner[face_id])
        if face_id < self.num_internal_faces:
            return owner, int(self._neighbour[face_id])
        return owner, -1

    def cell_faces(self, cell_id: int) -> np.ndarray:
        return self._connectivity.cell_faces(cell_id)

    def cell_neighbours(self, cell_id: int) -> np.ndarray:
        return self._connectivity.cell_neighbours(cell_id)

    def cell_boundary_ids(self, cell_id: int) -> np.ndarray:
        return self._connectivity.cell_boundary_ids(cell_id)

    def cell_points(self, cell_id: int) -> np.ndarray:
        return self._connectivity.cell_points(cell_id)

    def patch_points(self, name: str) -> np.ndarray:
        """Distinct point ids of a patch; empty for unknown patches."""
        found = self._patches_by_name.get(name)
        if found is None:
            return np.empty(0, dtype=np.int64)
        return self._connectivity.patch_points(found)

    def patch_of_face(self, face_id: int) -> Optional[BoundaryPatch]:
        """Patch holding a boundary face; None for internal or unknown faces."""
        if face_id < 0 or face_id >= self.num_faces:
            return None
        index = self._connectivity.face_patch_index(face_id)
        return self._boundary[index] if index >= 0 else None

    def is_face_on_boundary(self, face_id: int, patch: Optional[str] = None) -> bool:
        """Check if a face is a boundary face, optionally of a given patch."""
        if face_id < 0 or face_id >= self.num_faces:
            return False
        if patch is None:
            return face_id >= self.num_internal_faces
        found = self._patches_by_name.get(patch)
        if found is None:
            return False
        return found.start_face <= face_id < found.end_face

    def is_cell_on_boundary(self, cell_id: int, patch: Optional[str] = None) -> bool:
        """Check if a cell has a face on the boundary (or on a given patch)."""
        if cell_id < 0 or cell_id >= self.num_cells:
            return False
        ids = self.cell_boundary_ids(cell_id)
        if patch is None:
            return len(ids) > 0
        found = self._patches_by_name.get(patch)
        if found is None:
            return False
        return bool(np.any(ids == found.boundary_id))

    def boundary_cells(self, patch: str) -> np.ndarray:
        """Owner cell of every face of a patch; empty for unknown patches."""
        found = self._patches_by_name.get(patch)
        if found is None:
            return np.empty(0, dtype=np.int64)
        return self._owner[found.start_face:found.end_face]

    def summary(self) -> Dict[str, Any]:
        return {
            'n_points': self.num_points,
            'n_faces': self.num_faces,
            'n_cells': self.num_cells,
            'n_internal_faces': self.num_internal_faces,
            'n_boundary_faces': self.num_boundary_faces,
            'n_boundary_patches': len(self._boundary),
        }

    def __repr__(self) -> str:
        return (f"Mesh(points={self.num_points}, faces={self.num_faces}, "
                f"cells={self.num_cells}, patches={self.patch_names})")


# ---------------------------------------------------------------------- #
# Decoding of the individual polyMesh files
# ---------------------------------------------------------------------- #

def _data_list(foam_file: FoamFile, what: str) -> Node:
    if len(foam_file.data) != 1:
        raise StructuralError(f"{what} file must hold exactly one list, found {len(foam_file.data)}",
                              source=foam_file.source)
    return foam_file.data[0]


def decode_points(foam_file: FoamFile) -> np.ndarray:
    """Decode a ``vectorField`` points file to an (n, 3) array."""
    node = _data_list(foam_file, "points")
    return decode_field_value(node, ElementType.VECTOR, foam_file.source).to_numpy()


def decode_faces(foam_file: FoamFile) -> List[np.ndarray]:
    """Decode a ``faceList`` or ``faceCompactList`` faces file."""
    if foam_file.class_name == "faceCompactList":
        if len(foam_file.data) != 2:
            raise StructuralError(
                f"faceCompactList file must hold two lists, found {len(foam_file.data)}",
                source=foam_file.source)
        offsets, labels = foam_file.data
        return decode_compact_label_lists(offsets, labels, foam_file.source)
    return decode_label_lists(_data_list(foam_file, "faces"), foam_file.source)


def decode_labels(foam_file: FoamFile, what: str = "label") -> np.ndarray:
    """Decode a ``labelList`` file (owner, neighbour)."""
    node = _data_list(foam_file, what)
    return decode_list(node, ElementType.LABEL, foam_file.source).to_numpy()


def _int_entry(patch: Dictionary, key: str, source: Optional[str]) -> int:
    node = patch.get(key)
    if not isinstance(node, Number) or not node.is_integer:
        raise StructuralError(f"patch '{patch.name}' has no integer '{key}' entry",
                              patch=patch.name, source=source)
    return node.value


def _word_list(node: Optional[Node]) -> Tuple[str, ...]:
    if isinstance(node, SequenceNode):
        # List<word> 1(wall)
        node = node.items[-1]
    if isinstance(node, ListNode):
        return tuple(text for text in (as_text(item) for item in node.items) if text)
    return ()


def decode_boundary(foam_file: FoamFile) -> List[BoundaryPatch]:
    """Decode a ``polyBoundaryMesh`` file into ordered patches."""
    node = _data_list(foam_file, "boundary")
    if not isinstance(node, ListNode):
        raise StructuralError("boundary file does not hold a patch list", source=foam_file.source)
    if node.count is not None and node.count != len(node.items):
        raise SizeMismatch("boundary patch count differs from declared count",
                           node.count, len(node.items), foam_file.source)

    patches = []
    for index, entry in enumerate(node.items):
        if not isinstance(entry, Dictionary) or entry.name is None:
            raise StructuralError(f"boundary entry {index} is not a named dictionary",
                                  source=foam_file.source)
        patch_type = as_text(entry.get("type"))
        if patch_type is None:
            raise StructuralError(f"patch '{entry.name}' has no type", patch=entry.name,
                                  source=foam_file.source)
        parameters = {key: value for key, value in entry.items()
                      if key not in ("type", "nFaces", "startFace", "inGroups")}
        patches.append(BoundaryPatch(
            name=entry.name,
            patch_type=patch_type,
            n_faces=_int_entry(entry, "nFaces", foam_file.source),
            start_face=_int_entry(entry, "startFace", foam_file.source),
            index=index,
            in_groups=_word_list(entry.get("inGroups")),
            parameters=parameters,
        ))

    logger.info(f"Read {len(patches)} boundary patches")
    for patch in patches:
        logger.debug(f"  {patch.name}: {patch.patch_type}, {patch.n_faces} faces at {patch.start_face}")
    return patches


def _header_counts(foam_file: FoamFile) -> Dict[str, int]:
    note = as_text(foam_file.header.get("note")) or ""
    return {key: int(value) for key, value in _NOTE_COUNT.findall(note)}


def build_mesh(
    points: FoamFile,
    faces: FoamFile,
    owner: FoamFile,
    neighbour: FoamFile,
    boundary: FoamFile,
) -> Mesh:
    """
    Reconstruct a mesh from the five parsed polyMesh files.

    Raises:
        StructuralError: on any owner/neighbour/boundary inconsistency
        SizeMismatch: when a list disagrees with its declared length
    """
    mesh = Mesh(
        points=decode_points(points),
        faces=decode_faces(faces),
        owner=decode_labels(owner, "owner"),
        neighbour=decode_labels(neighbour, "neighbour"),
        boundary=decode_boundary(boundary),
        source=owner.source,
    )

    declared = _header_counts(owner).get("nCells")
    if declared is not None and declared != mesh.num_cells:
        logger.warning(f"owner header declares {declared} cells, connectivity implies {mesh.num_cells}")

    return mesh


class PolyMeshReader:
    """
    Reads all polyMesh files of one region through a ByteSource.
    """

    def __init__(self, source: Optional[ByteSource] = None):
        """Initialize polyMesh reader."""
        self.source = source or LocalFileSource()

    def read_file(self, path: PathLike) -> FoamFile:
        return parse_bytes(self.source.read(path), source=str(path))

    def read_polymesh(self, polymesh_dir: PathLike) -> Mesh:
        """
        Read complete OpenFOAM polyMesh from directory.

        Args:
            polymesh_dir: Path (or ByteSource key) of the polyMesh directory

        Returns:
            Mesh with lazily derived adjacency
        """
        logger.info(f"Reading OpenFOAM polyMesh from {polymesh_dir}")

        parsed = {name: self.read_file(join_path(polymesh_dir, name)) for name in MESH_FILES}
        mesh = build_mesh(**parsed)

        logger.info(f"Successfully read mesh: {mesh.num_cells} cells, "
                    f"{mesh.num_faces} faces, {mesh.num_points} points")
        return mesh
