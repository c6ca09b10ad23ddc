# Overview: Client for the third-party media host (Cloudinary REST API).

"""
Media Host Client

Wraps the Cloudinary upload/destroy REST endpoints with `requests`.

Uploads are authoritative: a failed upload fails the request.
Deletes are best-effort: remove_quietly() logs and swallows failures so a
media hiccup never aborts a catalog write that has already committed.

The active client lives in app.extensions["media_host"] so tests can swap in
a fake.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass

import requests
from flask import current_app

from ..errors import MediaHostError, ValidationError
from menuhub.time_utils import epoch_millis

API_BASE = "https://api.cloudinary.com/v1_1"

_VERSION_SEGMENT = re.compile(r"^v\d+$")


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: str


def slugify(value: str) -> str:
    """Lowercase, non-alphanumerics collapsed to single underscores."""
    return re.sub(r"_+", "_", re.sub(r"[^a-z0-9]", "_", (value or "").lower())).strip("_")


def unique_public_id(prefix: str, entity_id: int, label: str | None = None) -> str:
    parts = [prefix, str(entity_id)]
    if label:
        parts.append(slugify(label))
    parts.append(str(epoch_millis()))
    return "_".join(p for p in parts if p)


def public_id_from_url(url: str | None) -> str | None:
    """
    Derive the public id from a delivery URL.

    https://res.cloudinary.com/<cloud>/image/upload/v1712/products-images/product_3_x.jpg
        -> "products-images/product_3_x"

    The version segment after "upload" is optional.
    """
    if not url:
        return None
    parts = url.split("?", 1)[0].split("/")
    try:
        upload_index = parts.index("upload")
    except ValueError:
        return None
    rest = parts[upload_index + 1:]
    if rest and _VERSION_SEGMENT.match(rest[0]):
        rest = rest[1:]
    if not rest:
        return None
    path = "/".join(rest)
    if "." in rest[-1]:
        path = path[: path.rfind(".")]
    return path or None


class CloudinaryMediaHost:
    def __init__(self, cloud_name: str | None, api_key: str | None, api_secret: str | None, timeout: float = 15.0):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "CloudinaryMediaHost":
        return cls(
            config.get("CLOUDINARY_CLOUD_NAME"),
            config.get("CLOUDINARY_API_KEY"),
            config.get("CLOUDINARY_API_SECRET"),
            timeout=config.get("MEDIA_TIMEOUT_SECONDS", 15.0),
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def _sign(self, params: dict) -> str:
        # Signature: sha1 of "k1=v1&k2=v2" (sorted, excluding file/api_key) + secret
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
        return hashlib.sha1((to_sign + self.api_secret).encode("utf-8")).hexdigest()

    def _signed(self, params: dict) -> dict:
        params = dict(params, timestamp=str(epoch_millis() // 1000))
        params["signature"] = self._sign(params)
        params["api_key"] = self.api_key
        return params

    def _post(self, action: str, data: dict, files: dict | None = None) -> dict:
        if not self.configured:
            raise MediaHostError("Media host is not configured")
        url = f"{API_BASE}/{self.cloud_name}/image/{action}"
        try:
            response = requests.post(url, data=self._signed(data), files=files, timeout=self.timeout)
        except requests.RequestException as exc:
            raise MediaHostError(f"Media host unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise MediaHostError(f"Media host returned {response.status_code}: {response.text[:200]}")
        try:
            return response.json()
        except ValueError as exc:
            raise MediaHostError("Media host returned a non-JSON response") from exc

    def upload(self, data: bytes, *, folder: str, public_id: str, filename: str = "upload", content_type: str | None = None) -> MediaAsset:
        result = self._post(
            "upload",
            {"folder": folder, "public_id": public_id, "overwrite": "true"},
            files={"file": (filename, data, content_type or "application/octet-stream")},
        )
        url = result.get("secure_url")
        if not url:
            raise MediaHostError("Media host did not return a URL")
        return MediaAsset(url=url, public_id=result.get("public_id") or f"{folder}/{public_id}")

    def delete(self, public_id: str) -> None:
        result = self._post("destroy", {"public_id": public_id})
        if result.get("result") not in ("ok", "not found"):
            raise MediaHostError(f"Media host refused to delete {public_id}: {result}")


def get_media_host():
    return current_app.extensions["media_host"]


def remove_quietly(url: str | None) -> bool:
    """
    Best-effort delete of the asset behind url.

    Returns True when the host confirmed the delete; failures are logged
    and never raised.
    """
    public_id = public_id_from_url(url)
    if not public_id:
        return False
    try:
        get_media_host().delete(public_id)
    except MediaHostError as exc:
        current_app.logger.warning("Media cleanup failed for %s: %s", public_id, exc)
        return False
    return True


def read_image(file_storage) -> tuple[bytes, str, str]:
    """
    Validate a multipart image upload and return (data, filename, content_type).

    Only jpeg/jpg/png/gif/webp up to MAX_IMAGE_BYTES are accepted.
    """
    if file_storage is None or not file_storage.filename:
        raise ValidationError("No image was provided")

    filename = file_storage.filename
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    content_type = (file_storage.mimetype or "").lower()
    allowed = current_app.config["ALLOWED_IMAGE_EXTENSIONS"]
    if extension not in allowed or content_type.split("/")[-1] not in allowed:
        raise ValidationError("Only image files are allowed (jpeg, jpg, png, gif, webp)")

    max_bytes = current_app.config["MAX_IMAGE_BYTES"]
    data = file_storage.read(max_bytes + 1)
    if not data:
        raise ValidationError("The uploaded image is empty")
    if len(data) > max_bytes:
        raise ValidationError(f"Image exceeds the {max_bytes // (1024 * 1024)}MB limit")
    return data, filename, content_type


def upload_image(file_storage, *, folder: str, public_id: str) -> MediaAsset:
    data, filename, content_type = read_image(file_storage)
    return get_media_host().upload(
        data, folder=folder, public_id=public_id, filename=filename, content_type=content_type
    )
