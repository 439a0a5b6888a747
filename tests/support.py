"""Shared fakes and project builders for the test suite."""

import io
import os
from typing import Dict, List, Optional

import numpy as np
import yaml
from PIL import Image

from AssetSync import CONFIG_FILE_NAME
from AssetSync.core.records import InputConfig, SyncInput
from AssetSync.core.scanning import file_hash_bytes
from AssetSync.upload.service import PendingOperation, UploadService


class FakeUploadService(UploadService):
    """Scripted upload service.

    ``uploads`` is consumed one item per ``upload`` call: an int or
    `PendingOperation` is returned, an exception instance is raised. Once
    exhausted, ids are handed out from ``next_id``. ``operations`` maps an
    operation id to the successive answers of ``get_operation``.
    """

    def __init__(self, uploads: Optional[list] = None, operations: Optional[Dict[str, list]] = None,
                 next_id: int = 1000):
        self.uploads = list(uploads or [])
        self.operations = {k: list(v) for k, v in (operations or {}).items()}
        self.next_id = next_id
        self.upload_calls: List[tuple] = []
        self.poll_calls: List[str] = []
        self.downloads: List[int] = []

    def upload(self, name, contents, description, creator):
        self.upload_calls.append((name, contents, description, creator))
        if self.uploads:
            outcome = self.uploads.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        self.next_id += 1
        return self.next_id

    def get_operation(self, operation_id):
        self.poll_calls.append(operation_id)
        answers = self.operations.get(operation_id, [])
        return answers.pop(0) if answers else None

    def download(self, asset_id):
        self.downloads.append(asset_id)
        return f"asset-{asset_id}".encode()


class RecordingSleep:
    """Drop-in for ``time.sleep`` that records delays instead of sleeping."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def png_bytes(width=4, height=4, color=(200, 30, 30, 255)) -> bytes:
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :] = color
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    return buf.getvalue()


def write_png(path, width=4, height=4, color=(200, 30, 30, 255)) -> bytes:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    data = png_bytes(width, height, color)
    with open(path, "wb") as f:
        f.write(data)
    return data


def write_config(folder, data: dict) -> str:
    os.makedirs(folder, exist_ok=True)
    path = os.path.join(folder, CONFIG_FILE_NAME)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path


def make_input(path, dpi_scale=100, codegen=True, base=".", asset_id=None,
               contents=b"data", packable=False, image_slice=None,
               path_without_dpi_scale=None) -> SyncInput:
    """Build a `SyncInput` directly, bypassing the catalog."""
    return SyncInput(
        name=path,
        path=path,
        path_without_dpi_scale=path_without_dpi_scale or path,
        dpi_scale=dpi_scale,
        config=InputConfig(packable=packable, codegen=codegen, codegen_base_path=base),
        contents=contents,
        hash=file_hash_bytes(contents),
        id=asset_id,
        slice=image_slice,
    )
