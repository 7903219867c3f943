# fantasy_draft/api_client.py
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

import requests

from fantasy_draft.config import (
    ALLOWED_IMAGE_HOSTS,
    BOOTSTRAP_URL,
    DATA_DIR,
    IMAGE_CACHE_CONTROL,
)

logger = logging.getLogger(__name__)


def fetch_bootstrap_static(force_refresh=False, url=BOOTSTRAP_URL):
    file_path = DATA_DIR / "bootstrap-static.json"

    if file_path.exists() and not force_refresh:
        with open(file_path, "r") as f:
            return json.load(f)

    for attempt in range(3):  # Retry up to 3 times
        try:
            response = requests.get(url, timeout=30)
            response.raise_for_status()
            data = response.json()
            break
        except requests.exceptions.HTTPError as e:
            if attempt == 2:  # On the last attempt, re-raise the exception
                raise e
            logger.warning("Bootstrap fetch failed (attempt %d): %s", attempt + 1, e)
            time.sleep(2)  # Wait before retrying

    DATA_DIR.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w") as f:
        json.dump(data, f, indent=2)

    return data


@dataclass
class ImageResponse:
    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == 200


def fetch_image(url: Optional[str], session=None) -> ImageResponse:
    """Fetch a player photo from the allow-listed host for re-serving.

    Never raises: failures map to the HTTP status the caller should return.
    """
    if not url:
        return ImageResponse(400, b"Missing url parameter")

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return ImageResponse(400, b"Invalid url parameter")
    if parts.scheme not in ("http", "https") or not hostname:
        return ImageResponse(400, b"Invalid url parameter")
    if hostname not in ALLOWED_IMAGE_HOSTS:
        logger.warning("Refusing to proxy image from %s", hostname)
        return ImageResponse(403, b"Host not allowed")

    getter = session or requests
    try:
        upstream = getter.get(url, timeout=30)
    except requests.exceptions.RequestException as e:
        logger.error("Error fetching image %s: %s", url, e)
        return ImageResponse(500, b"Error fetching image")

    if not upstream.ok:
        return ImageResponse(upstream.status_code, b"Failed to fetch image")

    headers = {
        "Content-Type": upstream.headers.get("content-type") or "image/png",
        "Cache-Control": IMAGE_CACHE_CONTROL,
    }
    if upstream.headers.get("etag"):
        headers["ETag"] = upstream.headers["etag"]
    if upstream.headers.get("content-length"):
        headers["Content-Length"] = upstream.headers["content-length"]
    return ImageResponse(200, upstream.content, headers)
