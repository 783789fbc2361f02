"""
openfoamparser - reader for OpenFOAM ASCII cases.

Decodes the dictionary format, reconstructs polyMesh topology with lazy
adjacency, decodes volume/surface/point fields against the mesh and indexes
the time directories of a case.
"""

__version__ = "0.1.0"

from openfoamparser.exceptions import (
    FieldError, FoamError, LexError, ParseError, SizeMismatch,
    StructuralError, UnsupportedFormat,
)
from openfoamparser.parsing import FoamFile, parse_bytes
# fields before mesh, see openfoamparser.fields
from openfoamparser.fields import ElementType, Field, TypedArray, decode_field
from openfoamparser.mesh import BoundaryPatch, Mesh, PolyMeshReader
from openfoamparser.io import LocalDirectoryLister, LocalFileSource, MemorySource, join_path
from openfoamparser.core import FoamCase, ReaderConfig, TimeEntry, TimeIndex

__all__ = [
    "FoamError", "LexError", "ParseError", "UnsupportedFormat",
    "SizeMismatch", "StructuralError", "FieldError",
    "FoamFile", "parse_bytes",
    "ElementType", "Field", "TypedArray", "decode_field",
    "BoundaryPatch", "Mesh", "PolyMeshReader",
    "LocalDirectoryLister", "LocalFileSource", "MemorySource", "join_path",
    "FoamCase", "ReaderConfig", "TimeEntry", "TimeIndex",
]
