import json
import logging
import mimetypes
import os
from pathlib import Path

import requests

BASE = "https://api.nft.storage"

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)


class PinningError(RuntimeError):
    """The pinning service rejected the upload or returned garbage."""


class NFTStorageClient:
    def __init__(self, token: str | None = None, base_url: str = BASE, timeout: int = 120):
        self.token = token or os.getenv("NFTSTORAGE_API")
        if not self.token:
            raise PinningError("NFTSTORAGE_API not set in .env")
        self.url = f"{base_url}/store"
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }

    # ---------- core ----------

    def store(self, name: str, description: str, image_path: Path | str, **properties) -> dict:
        """Upload ERC-1155 style metadata plus its image and return the service's ``value`` payload.

        The image travels as a multipart file under the ``image`` field; the
        ``meta`` JSON carries ``null`` in its place and the service rewrites it
        to the pinned ``ipfs://`` URL.
        """
        image_path = Path(image_path)
        meta = {"name": name, "description": description, "image": None}
        if properties:
            meta["properties"] = properties

        content_type = mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"
        logger.debug("--- Sending to NFT.Storage ---")
        logger.debug("URL: %s", self.url)
        logger.debug("Meta: %s", meta)

        with open(image_path, "rb") as fh:
            files = {
                "meta": (None, json.dumps(meta), "application/json"),
                "image": (image_path.name, fh, content_type),
            }
            response = requests.post(self.url, files=files, headers=self.headers, timeout=self.timeout)

        logger.debug("Status Code: %s", response.status_code)

        try:
            body = response.json()
        except requests.exceptions.JSONDecodeError:
            raise PinningError(f"NFT.Storage returned non-JSON response (HTTP {response.status_code})")

        if not response.ok or not body.get("ok"):
            error = body.get("error", {}) if isinstance(body, dict) else {}
            raise PinningError(f"NFT.Storage upload failed (HTTP {response.status_code}): {error.get('message', body)}")
        return body["value"]


def store_metadata(name: str, description: str, image_path: Path | str, token: str | None = None) -> str:
    """Pin metadata and return its ``ipfs://`` URL."""
    value = NFTStorageClient(token).store(name, description, image_path)
    logger.info("Metadata stored on IPFS with URL %s", value["url"])
    return value["url"]
