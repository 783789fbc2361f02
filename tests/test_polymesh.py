#!/usr/bin/env python
"""
Tests for polyMesh reconstruction and lazy connectivity.
"""

import gzip
import os
import tempfile
import unittest

import numpy as np
from numpy.testing import assert_array_equal

from openfoamparser.exceptions import SizeMismatch, StructuralError
from openfoamparser.io.sources import LocalFileSource, MemorySource
from openfoamparser.mesh.connectivity import BOUNDARY_ID_BASE
from openfoamparser.mesh.polymesh import BoundaryPatch, Mesh, PolyMeshReader, build_mesh
from openfoamparser.parsing.parser import parse_bytes

import foam_samples
from foam_samples import BOUNDARY_BODY, boundary_file, mesh_files

MESH_DIR = "case/constant/polyMesh"


def read_sample_mesh(**overrides) -> Mesh:
    files = mesh_files()
    for name, content in overrides.items():
        files[f"{MESH_DIR}/{name}"] = content
    return PolyMeshReader(MemorySource(files)).read_polymesh(MESH_DIR)


def sample_patches():
    return [
        BoundaryPatch("inlet", "patch", 1, 1, index=0),
        BoundaryPatch("outlet", "patch", 1, 2, index=1),
        BoundaryPatch("walls", "wall", 8, 3, index=2, in_groups=("wall",)),
    ]


def sample_arrays():
    return dict(
        points=np.array(foam_samples.POINT_COORDINATES, dtype=float),
        faces=[np.array(face) for face in foam_samples.FACES],
        owner=np.array(foam_samples.OWNER),
        neighbour=np.array(foam_samples.NEIGHBOUR),
        boundary=sample_patches(),
    )


class TestPolyMeshReader(unittest.TestCase):
    """Test reading the two-cell sample mesh."""

    def setUp(self):
        self.mesh = read_sample_mesh()

    def test_sizes(self):
        self.assertEqual(self.mesh.num_points, 12)
        self.assertEqual(self.mesh.num_faces, 11)
        self.assertEqual(self.mesh.num_internal_faces, 1)
        self.assertEqual(self.mesh.num_boundary_faces, 10)
        self.assertEqual(self.mesh.num_cells, 2)

    def test_points(self):
        self.assertEqual(self.mesh.points.shape, (12, 3))
        assert_array_equal(self.mesh.points[7], [1.0, 0.0, 1.0])

    def test_faces(self):
        assert_array_equal(self.mesh.faces[0], [1, 4, 10, 7])
        assert_array_equal(self.mesh.owner, foam_samples.OWNER)
        assert_array_equal(self.mesh.neighbour, [1])

    def test_boundary(self):
        self.assertEqual(self.mesh.patch_names, ["inlet", "outlet", "walls"])
        walls = self.mesh.patch("walls")
        self.assertEqual(walls.patch_type, "wall")
        self.assertEqual(walls.start_face, 3)
        self.assertEqual(walls.end_face, 11)
        self.assertEqual(walls.in_groups, ("wall",))
        self.assertEqual(walls.boundary_id, BOUNDARY_ID_BASE - 2)
        self.assertEqual(self.mesh.patch_groups, {"wall": ["walls"]})

    def test_unknown_patch(self):
        with self.assertRaises(KeyError):
            self.mesh.patch("farfield")

    def test_arrays_are_read_only(self):
        with self.assertRaises(ValueError):
            self.mesh.owner[0] = 1
        with self.assertRaises(ValueError):
            self.mesh.points[0, 0] = 1.0

    def test_adjacency_invariant(self):
        mesh = self.mesh
        self.assertTrue(np.all((mesh.owner >= 0) & (mesh.owner < mesh.num_cells)))
        internal_owner = mesh.owner[:mesh.num_internal_faces]
        self.assertTrue(np.all((mesh.neighbour >= 0) & (mesh.neighbour < mesh.num_cells)))
        self.assertTrue(np.all(mesh.neighbour != internal_owner))

    def test_compact_faces(self):
        mesh = read_sample_mesh(faces=foam_samples.faces_compact_file())
        self.assertEqual(mesh.num_faces, 11)
        assert_array_equal(mesh.faces[10], [7, 8, 11, 10])

    def test_header_cell_count_mismatch_only_warns(self):
        with self.assertLogs("openfoamparser.mesh.polymesh", level="WARNING"):
            mesh = read_sample_mesh(owner=foam_samples.owner_file(n_cells=5))
        self.assertEqual(mesh.num_cells, 2)

    def test_missing_file_propagates_os_error(self):
        files = mesh_files()
        del files[f"{MESH_DIR}/neighbour"]
        with self.assertRaises(FileNotFoundError):
            PolyMeshReader(MemorySource(files)).read_polymesh(MESH_DIR)

    def test_local_compressed_mesh(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            for key, content in mesh_files().items():
                path = os.path.join(tmpdir, key)
                os.makedirs(os.path.dirname(path), exist_ok=True)
                if key.endswith("points"):
                    with gzip.open(path + ".gz", "wb") as f:
                        f.write(content.encode())
                else:
                    with open(path, "w") as f:
                        f.write(content)
            mesh = PolyMeshReader(LocalFileSource()).read_polymesh(os.path.join(tmpdir, MESH_DIR))
        self.assertEqual(mesh.num_points, 12)

    def test_logs_summary(self):
        with self.assertLogs("openfoamparser.mesh.polymesh", level="INFO") as logs:
            read_sample_mesh()
        self.assertTrue(any("2 cells, 11 faces, 12 points" in line for line in logs.output))


class TestConnectivity(unittest.TestCase):
    """Test lazily derived cell adjacency."""

    def setUp(self):
        self.mesh = Mesh(**sample_arrays())

    def test_lazy_build(self):
        self.assertFalse(self.mesh.connectivity.is_built)
        self.mesh.cell_faces(0)
        self.assertTrue(self.mesh.connectivity.is_built)

    def test_memoized(self):
        self.mesh.cell_faces(1)
        offsets = self.mesh.connectivity._cell_offsets
        self.mesh.cell_neighbours(0)
        self.assertIs(self.mesh.connectivity._cell_offsets, offsets)

    def test_cell_faces(self):
        assert_array_equal(self.mesh.cell_faces(0), [0, 1, 3, 4, 5, 6])
        assert_array_equal(self.mesh.cell_faces(1), [0, 2, 7, 8, 9, 10])

    def test_cell_neighbours(self):
        assert_array_equal(self.mesh.cell_neighbours(0), [1])
        assert_array_equal(self.mesh.cell_neighbours(1), [0])

    def test_cell_boundary_ids(self):
        ids = self.mesh.cell_boundary_ids(0)
        self.assertEqual(sorted(ids.tolist()), [-12, -12, -12, -12, -10])

    def test_cell_points(self):
        assert_array_equal(self.mesh.cell_points(0), [0, 1, 3, 4, 6, 7, 9, 10])

    def test_cell_id_out_of_range(self):
        for query in (self.mesh.cell_faces, self.mesh.cell_neighbours,
                      self.mesh.cell_boundary_ids, self.mesh.cell_points):
            for cell_id in (-1, 2):
                with self.assertRaises(IndexError):
                    query(cell_id)

    def test_face_id_out_of_range(self):
        for face_id in (-1, 11):
            with self.assertRaises(IndexError):
                self.mesh.face_cells(face_id)
            with self.assertRaises(IndexError):
                self.mesh.connectivity.face_patch_index(face_id)
        self.assertIsNone(self.mesh.patch_of_face(-1))

    def test_face_cells(self):
        self.assertEqual(self.mesh.face_cells(0), (0, 1))
        self.assertEqual(self.mesh.face_cells(2), (1, -1))

    def test_patch_of_face(self):
        self.assertIsNone(self.mesh.patch_of_face(0))
        self.assertEqual(self.mesh.patch_of_face(2).name, "outlet")
        self.assertEqual(self.mesh.patch_of_face(10).name, "walls")
        self.assertIsNone(self.mesh.patch_of_face(11))

    def test_face_on_boundary(self):
        self.assertFalse(self.mesh.is_face_on_boundary(0))
        self.assertTrue(self.mesh.is_face_on_boundary(1))
        self.assertTrue(self.mesh.is_face_on_boundary(1, "inlet"))
        self.assertFalse(self.mesh.is_face_on_boundary(1, "outlet"))
        self.assertFalse(self.mesh.is_face_on_boundary(1, "farfield"))

    def test_cell_on_boundary(self):
        self.assertTrue(self.mesh.is_cell_on_boundary(0))
        self.assertTrue(self.mesh.is_cell_on_boundary(0, "inlet"))
        self.assertFalse(self.mesh.is_cell_on_boundary(0, "outlet"))
        self.assertFalse(self.mesh.is_cell_on_boundary(5))

    def test_boundary_cells(self):
        assert_array_equal(self.mesh.boundary_cells("walls"), [0, 0, 0, 0, 1, 1, 1, 1])
        self.assertEqual(len(self.mesh.boundary_cells("farfield")), 0)

    def test_patch_points(self):
        assert_array_equal(self.mesh.patch_points("inlet"), [0, 3, 6, 9])
        self.assertEqual(len(self.mesh.patch_points("walls")), 12)
        self.assertEqual(len(self.mesh.patch_points("farfield")), 0)

    def test_cell_face_lists(self):
        rows = self.mesh.connectivity.cell_face_lists()
        self.assertEqual(len(rows), 2)
        assert_array_equal(rows[1], [0, 2, 7, 8, 9, 10])

    def test_summary(self):
        summary = self.mesh.summary()
        self.assertEqual(summary['n_cells'], 2)
        self.assertEqual(summary['n_boundary_patches'], 3)


class TestStructuralErrors(unittest.TestCase):
    """Test the consistency checks applied while assembling a mesh."""

    def build(self, **changes):
        arrays = sample_arrays()
        arrays.update(changes)
        return Mesh(**arrays)

    def test_neighbour_longer_than_owner(self):
        with self.assertRaises(StructuralError) as ctx:
            self.build(owner=np.array([0]), faces=[np.array([0, 1, 2])],
                       neighbour=np.array([1, 1]), boundary=[])
        self.assertIn("neighbour longer than owner", str(ctx.exception))

    def test_owner_face_count(self):
        with self.assertRaises(StructuralError):
            self.build(owner=np.array(foam_samples.OWNER[:-1]))

    def test_owner_equals_neighbour(self):
        with self.assertRaises(StructuralError):
            self.build(neighbour=np.array([0]))

    def test_negative_owner(self):
        owner = list(foam_samples.OWNER)
        owner[4] = -1
        with self.assertRaises(StructuralError):
            self.build(owner=np.array(owner))

    def test_point_out_of_range(self):
        faces = [np.array(face) for face in foam_samples.FACES]
        faces[3] = np.array([0, 1, 7, 12])
        with self.assertRaises(StructuralError):
            self.build(faces=faces)

    def test_patches_out_of_order(self):
        patches = sample_patches()
        patches[0], patches[1] = patches[1], patches[0]
        with self.assertRaises(StructuralError) as ctx:
            self.build(boundary=patches)
        self.assertEqual(ctx.exception.patch, "outlet")

    def test_patch_gap(self):
        patches = sample_patches()
        patches[2] = BoundaryPatch("walls", "wall", 7, 4, index=2)
        with self.assertRaises(StructuralError) as ctx:
            self.build(boundary=patches)
        self.assertEqual(ctx.exception.patch, "walls")

    def test_last_patch_short(self):
        patches = sample_patches()
        patches[2] = BoundaryPatch("walls", "wall", 7, 3, index=2)
        with self.assertRaises(StructuralError) as ctx:
            self.build(boundary=patches)
        self.assertEqual(ctx.exception.patch, "walls")

    def test_duplicate_patch(self):
        patches = sample_patches()
        patches[1] = BoundaryPatch("inlet", "patch", 1, 2, index=1)
        with self.assertRaises(StructuralError):
            self.build(boundary=patches)

    def test_boundary_without_type(self):
        body = BOUNDARY_BODY.replace("type            wall;", "")
        files = mesh_files()
        files[f"{MESH_DIR}/boundary"] = boundary_file(body)
        with self.assertRaises(StructuralError) as ctx:
            PolyMeshReader(MemorySource(files)).read_polymesh(MESH_DIR)
        self.assertEqual(ctx.exception.patch, "walls")

    def test_boundary_count_mismatch(self):
        body = BOUNDARY_BODY.replace("3\n(", "4\n(", 1)
        with self.assertRaises(SizeMismatch):
            build_mesh(*(parse_bytes(content) for content in (
                foam_samples.points_file(), foam_samples.faces_file(), foam_samples.owner_file(),
                foam_samples.neighbour_file(), boundary_file(body))))

    def test_empty_mesh(self):
        mesh = Mesh(points=np.empty((0, 3)), faces=[], owner=np.empty(0, dtype=int),
                    neighbour=np.empty(0, dtype=int), boundary=[])
        self.assertEqual(mesh.num_cells, 0)
        self.assertEqual(mesh.connectivity.cell_face_lists(), [])


if __name__ == '__main__':
    unittest.main()
