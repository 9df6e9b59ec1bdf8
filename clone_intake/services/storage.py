"""
Remote media store client (Cloudinary over its HTTP API)

The client is constructed explicitly from a CloudinaryConfig and injected
where needed; there is no process-wide SDK configuration.
"""
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlencode

import httpx

from ..core.config import Settings
from ..core.errors import RemoteOperationError, ValidationError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Operations the intake services need from the remote media store"""

    def sign_upload_params(self, folder: str, public_id: str, timestamp: int) -> dict: ...

    async def upload(self, content: bytes, folder: str, public_id: str, filename: str) -> dict: ...

    async def destroy(self, remote_id: str, resource_type: str = "video") -> dict: ...

    def signed_url(self, remote_id: str, resource_type: str = "video", attachment: bool = True) -> str: ...

    async def fetch(self, url: str) -> bytes: ...

    async def aclose(self) -> None: ...


@dataclass(frozen=True)
class CloudinaryConfig:
    cloud_name: str
    api_key: str
    api_secret: str
    api_base: str = "https://api.cloudinary.com/v1_1"
    timeout: float = 600.0
    download_url_ttl: int = 3600

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryConfig":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            api_base=settings.CLOUDINARY_API_BASE,
            timeout=settings.REMOTE_TIMEOUT_SECONDS,
            download_url_ttl=settings.DOWNLOAD_URL_TTL_SECONDS,
        )

    def validate(self) -> None:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise ValidationError("Cloudinary credentials are not configured")


def api_sign_request(params: dict, api_secret: str) -> str:
    """
    Sign API parameters the way Cloudinary expects.
    
    Parameters are sorted by name, joined as k=v with '&', the secret is
    appended and the whole string is SHA-1 hashed. Empty values are skipped.
    """
    to_sign = "&".join(
        f"{key}={value}"
        for key, value in sorted(params.items())
        if value is not None and value != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryStore:
    """
    Media store backed by Cloudinary's upload and admin endpoints.
    
    Key features:
    - Signed parameters for direct (browser or CLI) chunked uploads
    - Server-side single-request upload for small files
    - destroy() returns Cloudinary's {"result": ...} body untouched so callers
      decide what counts as success
    - Time-limited private download URLs for admin review
    """

    def __init__(self, config: CloudinaryConfig, http_client: Optional[httpx.AsyncClient] = None):
        config.validate()
        self.config = config
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=config.timeout)
        logger.info(f"☁️  Cloudinary client initialized: cloud={config.cloud_name}")

    def _endpoint(self, resource_type: str, action: str) -> str:
        return f"{self.config.api_base}/{self.config.cloud_name}/{resource_type}/{action}"

    def _signed(self, params: dict) -> dict:
        signed = {k: v for k, v in params.items() if v is not None}
        signed["signature"] = api_sign_request(signed, self.config.api_secret)
        signed["api_key"] = self.config.api_key
        return signed

    def sign_upload_params(self, folder: str, public_id: str, timestamp: int) -> dict:
        """Signature and public parameters for a direct upload"""
        signature = api_sign_request(
            {"folder": folder, "public_id": public_id, "timestamp": timestamp},
            self.config.api_secret
        )
        return {
            "cloud_name": self.config.cloud_name,
            "api_key": self.config.api_key,
            "timestamp": timestamp,
            "signature": signature,
            "folder": folder,
            "public_id": public_id,
            "upload_url": self._endpoint("video", "upload"),
        }

    async def upload(self, content: bytes, folder: str, public_id: str, filename: str) -> dict:
        """Upload a small file in one request and return the object metadata"""
        data = self._signed({
            "folder": folder,
            "public_id": public_id,
            "timestamp": int(time.time()),
        })
        response = await self.client.post(
            self._endpoint("video", "upload"),
            data=data,
            files={"file": (filename, content)}
        )
        if response.status_code >= 400:
            raise RemoteOperationError(
                f"Upload rejected by media store ({response.status_code}): {response.text}"
            )
        result = response.json()
        logger.info(f"✅ Uploaded {len(content)} bytes as {result.get('public_id')}")
        return result

    async def destroy(self, remote_id: str, resource_type: str = "video") -> dict:
        """Delete an asset; returns {"result": "ok" | "not found" | ...}"""
        data = self._signed({
            "public_id": remote_id,
            "timestamp": int(time.time()),
        })
        response = await self.client.post(self._endpoint(resource_type, "destroy"), data=data)
        if response.status_code >= 400:
            raise RemoteOperationError(
                f"Destroy request failed ({response.status_code}): {response.text}"
            )
        result = response.json()
        logger.info(f"🗑️  Destroy {remote_id}: {result}")
        return result

    def signed_url(self, remote_id: str, resource_type: str = "video", attachment: bool = True) -> str:
        """Time-limited private download URL for an asset"""
        now = int(time.time())
        params = self._signed({
            "public_id": remote_id,
            "type": "upload",
            "timestamp": now,
            "expires_at": now + self.config.download_url_ttl,
            "attachment": "true" if attachment else None,
        })
        return f"{self._endpoint(resource_type, 'download')}?{urlencode(params)}"

    async def fetch(self, url: str) -> bytes:
        response = await self.client.get(url, follow_redirects=True)
        if response.status_code >= 400:
            raise RemoteOperationError(
                f"Failed to fetch video from media store (status {response.status_code})"
            )
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
