"""
Lazy Connectivity for polyMesh Topology

Derives the cell-centred views of a face-based mesh on demand:
- cell-to-face connectivity (compressed row storage)
- cell-to-cell neighbours across internal faces
- face-to-patch lookup for boundary faces
- cell-to-point and patch-to-point sets

Nothing is computed until first asked for; each derived table is built
once per mesh and reused afterwards.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Boundary faces are reported as "neighbour" ids -10, -11, ... one per patch.
BOUNDARY_ID_BASE = -10


def boundary_id(patch_index: int) -> int:
    return BOUNDARY_ID_BASE - patch_index


class ConnectivityManager:
    """
    Memoized adjacency tables for one mesh.

    Features:
    - cell -> faces built from owner/neighbour with a single lexsort
    - cell -> neighbouring cells and boundary ids on the same rows
    - face -> patch for boundary faces
    """

    def __init__(self, mesh):
        """Initialize connectivity manager (no tables are built yet)."""
        self.mesh = mesh

        # Core connectivity data
        self._cell_offsets: Optional[np.ndarray] = None
        self._cell_to_faces: Optional[np.ndarray] = None
        self._cell_to_other: Optional[np.ndarray] = None
        self._face_to_patch: Optional[np.ndarray] = None

        # Patch point sets are cached as they are requested
        self._patch_points: Dict[str, np.ndarray] = {}

        self._connectivity_built = False

    @property
    def is_built(self) -> bool:
        return self._connectivity_built

    def build_connectivity(self) -> None:
        """Build cell-to-face and cell-to-cell connectivity."""
        mesh = self.mesh
        logger.info("Building connectivity matrices...")

        n_faces = mesh.num_faces
        n_internal = mesh.num_internal_faces
        owner = mesh.owner
        neighbour = mesh.neighbour

        face_to_patch = self._build_face_to_patch()

        # Boundary faces see their patch id on the far side
        far_side = np.empty(n_faces, dtype=np.int64)
        far_side[:n_internal] = neighbour
        far_side[n_internal:] = BOUNDARY_ID_BASE - face_to_patch

        face_ids = np.concatenate([np.arange(n_faces, dtype=np.int64),
                                   np.arange(n_internal, dtype=np.int64)])
        cells = np.concatenate([owner, neighbour]).astype(np.int64)
        others = np.concatenate([far_side, owner[:n_internal]]).astype(np.int64)

        order = np.lexsort((face_ids, cells))
        counts = np.bincount(cells, minlength=mesh.num_cells)
        offsets = np.zeros(mesh.num_cells + 1, dtype=np.int64)
        np.cumsum(counts, out=offsets[1:])

        cell_to_faces = face_ids[order]
        cell_to_other = others[order]
        for array in (offsets, cell_to_faces, cell_to_other, face_to_patch):
            array.flags.writeable = False

        self._face_to_patch = face_to_patch
        self._cell_offsets = offsets
        self._cell_to_faces = cell_to_faces
        self._cell_to_other = cell_to_other
        self._connectivity_built = True

        logger.info(f"Connectivity built: {mesh.num_cells} cells, {n_faces} faces")

    def _build_face_to_patch(self) -> np.ndarray:
        mesh = self.mesh
        sizes = [patch.n_faces for patch in mesh.boundary]
        return np.repeat(np.arange(len(sizes), dtype=np.int64), sizes)

    def _ensure_built(self) -> None:
        if not self._connectivity_built:
            self.build_connectivity()

    def _row(self, cell_id: int) -> Tuple[int, int]:
        if not 0 <= cell_id < self.mesh.num_cells:
            raise IndexError(f"cell id {cell_id} out of range [0, {self.mesh.num_cells})")
        self._ensure_built()
        return int(self._cell_offsets[cell_id]), int(self._cell_offsets[cell_id + 1])

    def cell_faces(self, cell_id: int) -> np.ndarray:
        """Face ids bounding a cell, ascending."""
        start, stop = self._row(cell_id)
        return self._cell_to_faces[start:stop]

    def cell_neighbours(self, cell_id: int) -> np.ndarray:
        """Ids of cells sharing an internal face with ``cell_id``."""
        start, stop = self._row(cell_id)
        others = self._cell_to_other[start:stop]
        return np.unique(others[others >= 0])

    def cell_boundary_ids(self, cell_id: int) -> np.ndarray:
        """Boundary ids (``-10 - patch index``) for each boundary face of a cell."""
        start, stop = self._row(cell_id)
        others = self._cell_to_other[start:stop]
        return others[others <= BOUNDARY_ID_BASE]

    def face_patch_index(self, face_id: int) -> int:
        """Index of the patch holding ``face_id``, -1 for internal faces."""
        if not 0 <= face_id < self.mesh.num_faces:
            raise IndexError(f"face id {face_id} out of range [0, {self.mesh.num_faces})")
        self._ensure_built()
        offset = face_id - self.mesh.num_internal_faces
        if offset < 0:
            return -1
        return int(self._face_to_patch[offset])

    def cell_points(self, cell_id: int) -> np.ndarray:
        """Unique point ids used by the faces of a cell."""
        faces = self.mesh.faces
        face_ids = self.cell_faces(cell_id)
        if len(face_ids) == 0:
            return np.empty(0, dtype=np.int64)
        return np.unique(np.concatenate([faces[f] for f in face_ids]))

    def patch_points(self, patch) -> np.ndarray:
        """Unique point ids used by the faces of a patch (cached per patch)."""
        cached = self._patch_points.get(patch.name)
        if cached is not None:
            return cached
        faces = self.mesh.faces[patch.start_face:patch.end_face]
        if faces:
            points = np.unique(np.concatenate(faces))
        else:
            points = np.empty(0, dtype=np.int64)
        points.flags.writeable = False
        self._patch_points[patch.name] = points
        return points

    def cell_face_lists(self) -> List[np.ndarray]:
        """All cell -> faces rows at once."""
        self._ensure_built()
        if self.mesh.num_cells == 0:
            return []
        return np.split(self._cell_to_faces, self._cell_offsets[1:-1])
