"""Tests for packaging and pyproject.toml correctness."""

import os
import tomllib
import unittest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _pyproject():
    with open(os.path.join(ROOT, "pyproject.toml"), "rb") as f:
        return tomllib.load(f)


def _requirements():
    with open(os.path.join(ROOT, "requirements.txt"), "r", encoding="utf-8") as f:
        return [
            ln.strip()
            for ln in f.readlines()
            if ln.strip() and not ln.strip().startswith("#")
        ]


def _names(specs):
    return {spec.split(">")[0].split("=")[0].split("<")[0].strip().lower() for spec in specs}


class TestPyproject(unittest.TestCase):
    def test_runtime_dependencies(self):
        deps = _names(_pyproject()["project"]["dependencies"])
        self.assertEqual(deps, {"numpy", "pillow", "pyyaml", "tqdm"})

    def test_pytest_only_in_test_extra(self):
        data = _pyproject()
        self.assertNotIn("pytest", _names(data["project"]["dependencies"]))
        self.assertIn("pytest", _names(data["project"]["optional-dependencies"]["test"]))

    def test_console_script(self):
        scripts = _pyproject()["project"]["scripts"]
        self.assertEqual(scripts["assetsync"], "AssetSync.cli:main")

    def test_version_matches_package(self):
        from AssetSync import __version__
        self.assertEqual(_pyproject()["project"]["version"], __version__)


class TestRequirements(unittest.TestCase):
    def test_requirements_mirror_runtime_dependencies(self):
        runtime = _names(_pyproject()["project"]["dependencies"])
        self.assertTrue(runtime <= _names(_requirements()))

    def test_no_dropped_heavy_dependencies(self):
        names = _names(_requirements())
        for dropped in ("torch", "onnxruntime", "opencv-python", "scipy"):
            self.assertNotIn(dropped, names)


if __name__ == "__main__":
    unittest.main(verbosity=2)
