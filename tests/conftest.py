"""Shared test fixtures."""

import os
import shutil
import tempfile

import pytest

from AssetSync.config import InputRule, ProjectConfig

from support import FakeUploadService, RecordingSleep, write_config, write_png


@pytest.fixture
def tmp_dir():
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def fake_service():
    return FakeUploadService()


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def project(tmp_dir):
    """A small project: two icons (one with a 2x variant) and a background."""
    write_config(tmp_dir, {
        "name": "demo",
        "inputs": [{"glob": "assets/**/*.png", "codegen": True, "codegen_base_path": "assets"}],
        "codegen": {"lua_path": "out/assets.lua", "typescript_path": "out/assets.d.ts"},
        "sync": {"target": "debug"},
    })
    write_png(os.path.join(tmp_dir, "assets", "icons", "play.png"), color=(0, 255, 0, 255))
    write_png(os.path.join(tmp_dir, "assets", "icons", "play@2x.png"), 8, 8)
    write_png(os.path.join(tmp_dir, "assets", "background.png"), color=(0, 0, 255, 255))
    return ProjectConfig.from_yaml(os.path.join(tmp_dir, "assetsync.yaml"))


@pytest.fixture
def default_config(tmp_dir):
    config = ProjectConfig()
    config.project_dir = tmp_dir
    config.inputs = [InputRule(glob="**/*.png", codegen=True)]
    return config
