"""
OpenFOAM case facade.

Ties the collaborators, the mesh reader, the time index and the field decoder
together for one case root and one mesh region:

    case = FoamCase("cavity")
    mesh = case.mesh
    U = case.read_field("U", "latestTime")
"""

import logging
from typing import Optional, Union

import numpy as np

from openfoamparser.core.config import ReaderConfig
from openfoamparser.core.times import TimeEntry, TimeIndex
from openfoamparser.exceptions import FieldError
from openfoamparser.fields.field import Field, FieldGeometry, decode_field
from openfoamparser.fields.typed_list import ElementType
from openfoamparser.io.sources import (
    ByteSource, DirectoryLister, LocalDirectoryLister, LocalFileSource, PathLike, join_path,
)
from openfoamparser.mesh.polymesh import Mesh, PolyMeshReader
from openfoamparser.parsing.parser import FoamFile, parse_bytes

logger = logging.getLogger(__name__)

TimeSpec = Union[str, float, int, TimeEntry]


class FoamCase:
    """
    One case directory (or virtual tree) and one mesh region.

    The mesh and the time index are read on first use and kept; fields are
    decoded on every request.
    """

    def __init__(
        self,
        root: PathLike,
        config: Optional[ReaderConfig] = None,
        source: Optional[ByteSource] = None,
        lister: Optional[DirectoryLister] = None,
    ):
        self.root = str(root)
        self.config = config or ReaderConfig()
        self.source = source or LocalFileSource(allow_compressed=self.config.allow_compressed)
        self.lister = lister or LocalDirectoryLister()

        self._mesh: Optional[Mesh] = None
        self._times: Optional[TimeIndex] = None

    @property
    def mesh_path(self) -> str:
        return self.config.mesh_path(self.root)

    @property
    def mesh(self) -> Mesh:
        if self._mesh is None:
            self._mesh = PolyMeshReader(self.source).read_polymesh(self.mesh_path)
        return self._mesh

    @property
    def times(self) -> TimeIndex:
        if self._times is None:
            self._times = TimeIndex.scan(self.root, self.lister)
        return self._times

    def rescan_times(self) -> TimeIndex:
        """Replace the time index with a fresh scan of the case root."""
        self._times = self.times.rescan()
        return self._times

    def resolve_time(self, time: TimeSpec) -> TimeEntry:
        if isinstance(time, TimeEntry):
            return time
        return self.times.resolve(time)

    def field_path(self, name: str, time: TimeSpec) -> str:
        """Key of a field file: ``<root>/<time>/[<region>/]<name>``."""
        entry = self.resolve_time(time)
        return join_path(self.root, entry.name, self.config.region, name)

    def read_file(self, path: PathLike) -> FoamFile:
        return parse_bytes(self.source.read(path), source=str(path))

    def read_field(self, name: str, time: TimeSpec = "latestTime") -> Field:
        """Decode field ``name`` at a time against the case mesh."""
        path = self.field_path(name, time)
        logger.info(f"Reading field {name} from {path}")
        return decode_field(self.read_file(path), self.mesh, name=name,
                            boundary_patterns=self.config.boundary_patterns)

    def read_cell_centres(self, time: TimeSpec = "latestTime") -> np.ndarray:
        """
        Cell centres written by ``postProcess -func writeCellCentres``.

        Returns:
            (n_cells, 3) array
        """
        centres = self.read_field(self.config.cell_centres_field, time)
        if centres.geometry is not FieldGeometry.VOLUME or centres.element_type is not ElementType.VECTOR:
            raise FieldError(f"cell centres must be a volVectorField, found {centres.field_class}",
                             source=centres.source)
        return centres.internal.to_numpy()

    def __repr__(self) -> str:
        region = f", region={self.config.region!r}" if self.config.region else ""
        return f"FoamCase({self.root!r}{region})"
