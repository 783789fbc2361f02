#!/usr/bin/env python
"""
Tests for the reader configuration.
"""

import json
import os
import tempfile
import unittest

from openfoamparser.core.config import HAS_YAML, ReaderConfig


class TestReaderConfig(unittest.TestCase):

    def test_defaults(self):
        config = ReaderConfig()
        self.assertIsNone(config.region)
        self.assertEqual(config.mesh_directory, "polyMesh")
        self.assertTrue(config.allow_compressed)
        self.assertTrue(config.boundary_patterns)
        self.assertEqual(config.mesh_path("case"), "case/constant/polyMesh")

    def test_from_dict(self):
        config = ReaderConfig.from_dict({"region": "solid", "boundary_patterns": False})
        self.assertEqual(config.region, "solid")
        self.assertFalse(config.boundary_patterns)
        self.assertEqual(config.mesh_path("case"), "case/constant/solid/polyMesh")

    def test_unknown_key(self):
        with self.assertRaises(ValueError):
            ReaderConfig.from_dict({"regoin": "solid"})

    def test_empty_mesh_directory(self):
        with self.assertRaises(ValueError):
            ReaderConfig(mesh_directory="")

    def test_to_dict_round_trip(self):
        config = ReaderConfig(region="fluid", cell_centres_field="cellCentres")
        self.assertEqual(ReaderConfig.from_dict(config.to_dict()), config)

    def test_json_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "reader.json")
            with open(path, "w") as f:
                json.dump({"allow_compressed": False}, f)
            config = ReaderConfig.from_file(path)
        self.assertFalse(config.allow_compressed)

    def test_save_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "reader.json")
            ReaderConfig(region="fluid").save(path)
            self.assertEqual(ReaderConfig.from_file(path).region, "fluid")

    @unittest.skipUnless(HAS_YAML, "PyYAML not installed")
    def test_yaml_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "reader.yaml")
            with open(path, "w") as f:
                f.write("region: fluid\nmesh_directory: polyMesh\n")
            config = ReaderConfig.from_file(path)
        self.assertEqual(config.region, "fluid")

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            ReaderConfig.from_file("/nonexistent/reader.json")

    def test_unsupported_suffix(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "reader.ini")
            with open(path, "w") as f:
                f.write("[reader]\n")
            with self.assertRaises(ValueError):
                ReaderConfig.from_file(path)

    def test_save_unsupported_suffix_writes_nothing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "reader.ini")
            with self.assertRaises(ValueError):
                ReaderConfig().save(path)
            self.assertFalse(os.path.exists(path))


if __name__ == '__main__':
    unittest.main()
