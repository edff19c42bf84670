"""NFT.Storage uploads with the HTTP layer mocked out."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from nbmon_ops.helpers.pinning import NFTStorageClient, PinningError, store_metadata


@pytest.fixture()
def image(tmp_path: Path) -> Path:
    path = tmp_path / "genesisEgg.png"
    path.write_bytes(b"\x89PNG fake")
    return path


def _response(status: int, body=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    if body is None:
        resp.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
    else:
        resp.json.return_value = body
    return resp


def test_token_required() -> None:
    with pytest.raises(PinningError, match="NFTSTORAGE_API"):
        NFTStorageClient()


def test_token_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NFTSTORAGE_API", "tok")
    assert NFTStorageClient().headers["Authorization"] == "Bearer tok"


def test_store_metadata(image: Path) -> None:
    value = {"ipnft": "bafy123", "url": "ipfs://bafy123/metadata.json"}
    with patch("nbmon_ops.helpers.pinning.requests.post", return_value=_response(200, {"ok": True, "value": value})) as post:
        url = store_metadata("Genesis Egg", "Hatches into an NBMon", image, token="tok")

    assert url == "ipfs://bafy123/metadata.json"
    assert post.call_args.args[0] == "https://api.nft.storage/store"
    files = post.call_args.kwargs["files"]
    meta = json.loads(files["meta"][1])
    assert meta == {"name": "Genesis Egg", "description": "Hatches into an NBMon", "image": None}
    assert files["image"][0] == "genesisEgg.png"
    assert files["image"][2] == "image/png"


def test_properties_are_sent(image: Path) -> None:
    with patch("nbmon_ops.helpers.pinning.requests.post", return_value=_response(200, {"ok": True, "value": {"url": "u"}})) as post:
        NFTStorageClient("tok").store("Egg", "d", image, rarity="Common")
    meta = json.loads(post.call_args.kwargs["files"]["meta"][1])
    assert meta["properties"] == {"rarity": "Common"}


def test_service_error(image: Path) -> None:
    body = {"ok": False, "error": {"name": "HTTPError", "message": "Unauthorized"}}
    with patch("nbmon_ops.helpers.pinning.requests.post", return_value=_response(401, body)):
        with pytest.raises(PinningError, match="Unauthorized"):
            store_metadata("Egg", "d", image, token="bad")


def test_non_json_response(image: Path) -> None:
    with patch("nbmon_ops.helpers.pinning.requests.post", return_value=_response(502)):
        with pytest.raises(PinningError, match="non-JSON"):
            store_metadata("Egg", "d", image, token="tok")
