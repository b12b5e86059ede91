"""
Remote blob storage on IPFS through the Pinata pinning API.

Uploads return the content hash and a gateway URL of the form
``https://<gateway-host>/ipfs/<hash>``. Each call is a single HTTP request
bounded by ``UPLOAD_TIMEOUT_SECONDS``; there are no retries.
"""
import json
import logging
from typing import Optional, Protocol

import requests
from pydantic import BaseModel

from app.core.config import Settings

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """The remote store rejected the upload or could not be reached."""


class UploadResult(BaseModel):
    content_hash: str
    gateway_url: str


class BlobUploader(Protocol):
    def upload(self, data: bytes, name: str) -> UploadResult:
        ...


def gateway_url(gateway_host: str, content_hash: str) -> str:
    return f"https://{gateway_host}/ipfs/{content_hash}"


class PinataUploader:
    """
    Pin files to IPFS with Pinata.

    Args:
        settings: Supplies the JWT, API URL, gateway host and timeout
        session: Optional ``requests.Session`` (connection reuse, testing)
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def upload(self, data: bytes, name: str) -> UploadResult:
        if not self.settings.PINATA_JWT:
            raise UploadError("PINATA_JWT is not configured")

        logger.info("Uploading %s (%d bytes) to Pinata", name, len(data))
        try:
            response = self.session.post(
                self.settings.PINATA_API_URL,
                headers={"Authorization": f"Bearer {self.settings.PINATA_JWT}"},
                files={"file": (name, data)},
                data={"pinataMetadata": json.dumps({"name": name})},
                timeout=self.settings.UPLOAD_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            content_hash = response.json()["IpfsHash"]
        except requests.RequestException as exc:
            logger.error("Pinata upload of %s failed: %s", name, exc)
            raise UploadError(f"upload of {name} failed") from exc
        except (KeyError, ValueError) as exc:
            logger.error("Unexpected Pinata response for %s: %s", name, exc)
            raise UploadError(f"unexpected response uploading {name}") from exc

        url = gateway_url(self.settings.PINATA_GATEWAY_URL, content_hash)
        logger.info("Uploaded %s as %s", name, content_hash)
        return UploadResult(content_hash=content_hash, gateway_url=url)
