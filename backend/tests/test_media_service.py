# Overview: Pytest coverage for the media host client helpers.

import pytest
import requests

from menuhub.errors import MediaHostError
from menuhub.services import media_service
from menuhub.services.media_service import CloudinaryMediaHost


class TestPublicIdFromUrl:

    @pytest.mark.parametrize("url,expected", [
        ("https://res.cloudinary.com/demo/image/upload/v1712/products-images/product_3_x.jpg",
         "products-images/product_3_x"),
        ("https://res.cloudinary.com/demo/image/upload/commerces-logos/logo.png",
         "commerces-logos/logo"),
        ("https://res.cloudinary.com/demo/image/upload/v1/a/b/c.webp?x=1", "a/b/c"),
        ("https://res.cloudinary.com/demo/image/upload/v1/no_extension", "no_extension"),
    ])
    def test_parses_delivery_urls(self, url, expected):
        assert media_service.public_id_from_url(url) == expected

    @pytest.mark.parametrize("url", [None, "", "https://example.com/pic.jpg", "https://res.cloudinary.com/demo/image/upload/v12"])
    def test_unparseable_urls(self, url):
        assert media_service.public_id_from_url(url) is None


class TestNaming:

    def test_slugify(self):
        assert media_service.slugify("Pizza  Margherita (XL)!") == "pizza_margherita_xl"

    def test_unique_public_id(self):
        public_id = media_service.unique_public_id("product", 7, "Big Burger")
        prefix, _, millis = public_id.rpartition("_")

        assert prefix == "product_7_big_burger"
        assert millis.isdigit()


class _Response:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


class TestCloudinaryClient:

    def _host(self):
        return CloudinaryMediaHost("demo", "key", "secret", timeout=1)

    def test_unconfigured_host_refuses(self):
        with pytest.raises(MediaHostError):
            CloudinaryMediaHost(None, None, None).delete("x")

    def test_upload_signs_request(self, monkeypatch):
        calls = []

        def fake_post(url, data=None, files=None, timeout=None):
            calls.append({"url": url, "data": data, "files": files})
            return _Response(200, {"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/f/p.jpg", "public_id": "f/p"})

        monkeypatch.setattr(requests, "post", fake_post)

        asset = self._host().upload(b"bytes", folder="f", public_id="p", filename="p.jpg", content_type="image/jpeg")

        assert asset.public_id == "f/p"
        assert calls[0]["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
        assert calls[0]["data"]["api_key"] == "key"
        assert len(calls[0]["data"]["signature"]) == 40

    def test_http_error_becomes_media_host_error(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda *a, **kw: _Response(500, {"error": "boom"}))

        with pytest.raises(MediaHostError):
            self._host().delete("f/p")

    def test_network_error_becomes_media_host_error(self, monkeypatch):
        def fail(*args, **kwargs):
            raise requests.ConnectionError("down")

        monkeypatch.setattr(requests, "post", fail)

        with pytest.raises(MediaHostError):
            self._host().delete("f/p")

    def test_not_found_delete_is_ok(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda *a, **kw: _Response(200, {"result": "not found"}))
        self._host().delete("f/p")


class TestRemoveQuietly:

    def test_logs_and_returns_false_on_failure(self, db_session, media_host, caplog):
        media_host.fail_deletes = True

        removed = media_service.remove_quietly("https://res.cloudinary.com/demo/image/upload/v1/f/p.jpg")

        assert removed is False
        assert "Media cleanup failed" in caplog.text

    def test_skips_urls_without_public_id(self, db_session, media_host):
        assert media_service.remove_quietly("https://example.com/x.jpg") is False
        assert media_host.deleted == []
