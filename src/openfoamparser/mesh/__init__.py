"""polyMesh reconstruction and lazy connectivity."""

from .connectivity import BOUNDARY_ID_BASE, ConnectivityManager, boundary_id
from .polymesh import BoundaryPatch, Mesh, PolyMeshReader, build_mesh

__all__ = [
    'BOUNDARY_ID_BASE',
    'BoundaryPatch',
    'ConnectivityManager',
    'Mesh',
    'PolyMeshReader',
    'boundary_id',
    'build_mesh',
]
