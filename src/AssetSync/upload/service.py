"""Upload Service contract and a thin HTTP implementation.

The sync engine only talks to the hosting service through `UploadService`.
`HttpUploadService` speaks a small JSON/multipart protocol:

  POST {base_url}/assets/v1/assets           -> {"path": "operations/<id>", ...}
  GET  {base_url}/assets/v1/operations/<id>  -> {"done": true, "response": {"assetId": "123"}}
  GET  {download_url}/v1/asset/?id=<id>      -> raw bytes

HTTP 429 maps to `RateLimitedError`, a 400 whose body mentions moderation
maps to `ModeratedNameError`, other HTTP failures to `ApiError`, and
network or protocol faults to `TransportError`.
"""

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
import uuid
from dataclasses import dataclass
from typing import Optional, Union

from .errors import ApiError, ModeratedNameError, RateLimitedError, TransportError

logger = logging.getLogger("asset_sync.upload.service")


@dataclass(frozen=True)
class AssetCreator:
    """Owner of uploaded assets: a user or a group, never both."""

    kind: str
    id: int

    @classmethod
    def user(cls, user_id: int) -> "AssetCreator":
        return cls("user", int(user_id))

    @classmethod
    def group(cls, group_id: int) -> "AssetCreator":
        return cls("group", int(group_id))

    def to_json(self) -> dict:
        """Return the creator as the service expects it in a request body."""
        key = "userId" if self.kind == "user" else "groupId"
        return {key: str(self.id)}


@dataclass(frozen=True)
class PendingOperation:
    """An accepted upload whose asset id must be polled for."""

    operation_id: str


UploadResult = Union[int, PendingOperation]


class UploadService:
    """Interface every upload service client implements."""

    def upload(
        self, name: str, contents: bytes, description: str, creator: AssetCreator
    ) -> UploadResult:
        """Upload one image; return its asset id or a pending operation."""
        raise NotImplementedError

    def get_operation(self, operation_id: str) -> Optional[int]:
        """Return the asset id for a finished operation, ``None`` while pending."""
        raise NotImplementedError

    def download(self, asset_id: int) -> bytes:
        """Return the stored bytes of an asset."""
        raise NotImplementedError


class HttpUploadService(UploadService):
    """`UploadService` over plain HTTP using ``urllib``."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        download_url: str = "",
        timeout: float = 30.0,
    ):
        """Store endpoint roots and the API key sent with every request."""
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.download_url = (download_url or base_url).rstrip("/")
        self.timeout = timeout

    def upload(self, name, contents, description, creator):
        request_json = json.dumps({
            "assetType": "Image",
            "displayName": name,
            "description": description,
            "creationContext": {"creator": creator.to_json()},
        })
        body, content_type = _encode_multipart(
            {"request": request_json},
            {"fileContent": (f"{name}.png", "image/png", contents)},
        )
        payload = self._json(
            self._request(
                "POST", f"{self.base_url}/assets/v1/assets", body,
                {"Content-Type": content_type},
            )
        )
        asset_id = _asset_id_from_operation(payload)
        if asset_id is not None:
            return asset_id
        path = payload.get("path")
        if not isinstance(path, str) or not path:
            raise TransportError("Upload response is missing the operation path")
        if not path.startswith("operations/"):
            raise TransportError(f"Upload response has a malformed operation path: {path!r}")
        return PendingOperation(path[len("operations/"):])

    def get_operation(self, operation_id):
        quoted = urllib.parse.quote(operation_id, safe="")
        payload = self._json(
            self._request("GET", f"{self.base_url}/assets/v1/operations/{quoted}")
        )
        return _asset_id_from_operation(payload)

    def download(self, asset_id):
        return self._request("GET", f"{self.download_url}/v1/asset/?id={int(asset_id)}")

    def _request(self, method: str, url: str, body: bytes = None, headers: dict = None) -> bytes:
        req = urllib.request.Request(
            url,
            data=body,
            method=method,
            headers={"x-api-key": self._api_key, **(headers or {})},
        )
        logger.debug("%s %s", method, url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.read()
        except urllib.error.HTTPError as e:
            text = e.read().decode("utf-8", errors="replace")
            if e.code == 429:
                raise RateLimitedError() from e
            if e.code == 400 and "moderated" in text.lower():
                raise ModeratedNameError(
                    f"Asset name was moderated: {text}", status=e.code, body=text
                ) from e
            raise ApiError(
                f"Upload service returned HTTP {e.code} with body: {text}",
                status=e.code, body=text,
            ) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _json(raw: bytes) -> dict:
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise TransportError(f"Upload service returned malformed JSON: {e}") from e
        if not isinstance(payload, dict):
            raise TransportError("Upload service returned a non-object JSON payload")
        return payload


def _asset_id_from_operation(payload: dict) -> Optional[int]:
    """Extract ``response.assetId`` from a finished operation payload."""
    response = payload.get("response")
    if not payload.get("done") or not isinstance(response, dict):
        return None
    raw = response.get("assetId")
    try:
        return int(str(raw))
    except (TypeError, ValueError) as e:
        raise TransportError(f"Failed to parse asset id {raw!r} from operation") from e


def _encode_multipart(fields: dict, files: dict):
    boundary = uuid.uuid4().hex
    lines = []
    for key, value in fields.items():
        lines.append(f"--{boundary}\r\n".encode())
        lines.append(f'Content-Disposition: form-data; name="{key}"\r\n\r\n'.encode())
        lines.append(value.encode("utf-8") + b"\r\n")
    for key, (filename, mime, data) in files.items():
        lines.append(f"--{boundary}\r\n".encode())
        lines.append(
            f'Content-Disposition: form-data; name="{key}"; filename="{filename}"\r\n'.encode()
        )
        lines.append(f"Content-Type: {mime}\r\n\r\n".encode())
        lines.append(data + b"\r\n")
    lines.append(f"--{boundary}--\r\n".encode())
    return b"".join(lines), f"multipart/form-data; boundary={boundary}"
