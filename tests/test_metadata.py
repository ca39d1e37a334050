import pytest
import requests

from somnipump import metadata
from somnipump.types import LaunchRequest

BASE = "https://meta.example"


def make_request(**kw):
    return LaunchRequest(name="Moon", symbol="MOON", initial_supply="1", twitter="https://x.com/moon", **kw)


def test_build_metadata_document():
    doc = metadata.build_metadata(make_request(auto_renounce=True), "ipfs://img", "0xme")
    assert doc["links"]["twitter"] == "https://x.com/moon"
    assert doc["options"] == {"autoRenounce": True, "lockLP": True}
    assert doc["image"] == "ipfs://img"
    assert doc["owner"] == "0xme"


def test_store_returns_uri(requests_mock):
    requests_mock.post(f"{BASE}/upload", json={"cid": "bafy123"})
    res = metadata.MetadataStore(BASE, api_key="k").store(b"{}", "m.json", "application/json")
    assert res == {"ok": True, "uri": "ipfs://bafy123"}
    assert requests_mock.last_request.headers["Authorization"] == "Bearer k"


def test_store_http_error(requests_mock):
    requests_mock.post(f"{BASE}/upload", status_code=500, text="down")
    res = metadata.MetadataStore(BASE).store(b"{}", "m.json", "application/json")
    assert res["ok"] is False
    assert "HTTP 500" in res["error"]


def test_store_malformed(requests_mock):
    requests_mock.post(f"{BASE}/upload", json={"nothing": True})
    res = metadata.MetadataStore(BASE).store(b"{}", "m.json", "application/json")
    assert res == {"ok": False, "error": "malformed_upload_response"}


def test_store_non_object_response(requests_mock):
    requests_mock.post(f"{BASE}/upload", json=["bafy123"])
    res = metadata.MetadataStore(BASE).store(b"{}", "m.json", "application/json")
    assert res == {"ok": False, "error": "malformed_upload_response"}


def test_publish_tolerates_non_object_response(requests_mock):
    requests_mock.post(f"{BASE}/upload", json="ipfs://bafy123")
    assert metadata.publish_launch_metadata(metadata.MetadataStore(BASE), make_request()) is None


def test_publish_with_image(tmp_path, requests_mock):
    img = tmp_path / "logo.png"
    img.write_bytes(b"\x89PNG....")
    requests_mock.post(
        f"{BASE}/upload",
        [{"json": {"uri": "ipfs://image"}}, {"json": {"uri": "ipfs://meta"}}],
    )
    uri = metadata.publish_launch_metadata(
        metadata.MetadataStore(BASE), make_request(image_path=str(img)), "0xme"
    )
    assert uri == "ipfs://meta"
    assert requests_mock.call_count == 2
    assert b"ipfs://image" in requests_mock.last_request.body


def test_publish_without_store():
    assert metadata.publish_launch_metadata(None, make_request()) is None


def test_publish_tolerates_network_failure(requests_mock):
    requests_mock.post(f"{BASE}/upload", exc=requests.ConnectionError("offline"))
    assert metadata.publish_launch_metadata(metadata.MetadataStore(BASE), make_request()) is None


def test_publish_tolerates_http_failure(requests_mock):
    requests_mock.post(f"{BASE}/upload", status_code=503)
    assert metadata.publish_launch_metadata(metadata.MetadataStore(BASE), make_request()) is None
