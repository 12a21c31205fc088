# core/stash_client.py

"""
Stash GraphQL API client for triggering library scans
"""
import json
import logging
import os
from typing import Optional

import httpx
from pydantic import BaseModel

from ..utils.errors import NotifyError

logger = logging.getLogger(__name__)

SCAN_MUTATION = "mutation { metadataScan (input: { %s }) }"


class ScanOptions(BaseModel):
    """metadataScan input flags"""
    rescan: bool = False
    scanGenerateClipPreviews: bool = False
    scanGenerateCovers: bool = False
    scanGenerateImagePreviews: bool = False
    scanGeneratePhashes: bool = False
    scanGeneratePreviews: bool = False
    scanGenerateSprites: bool = False
    scanGenerateThumbnails: bool = False

    def to_graphql(self) -> str:
        fields = ", ".join(
            f"{name}: {'true' if value else 'false'}"
            for name, value in self.model_dump().items()
        )
        return SCAN_MUTATION % fields


class StashConfig(BaseModel):
    """Stash API configuration"""
    endpoint: str = ""
    do_auth: bool = False
    api_key: Optional[str] = None
    timeout: float = 3.0
    scan: ScanOptions = ScanOptions()


class StashClient:
    """Client that asks a Stash server to rescan its library"""

    def __init__(self, config: StashConfig = None, transport: httpx.BaseTransport = None):
        self.config = config or StashConfig()
        self.client = httpx.Client(
            timeout=self.config.timeout,
            limits=httpx.Limits(max_keepalive_connections=1024),
            transport=transport,
        )
        self.scan_body = self.build_scan_body()
        logger.debug(f"Scan request body: {self.scan_body}")

    def build_scan_body(self) -> str:
        return json.dumps({"query": self.config.scan.to_graphql()})

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}

        # Cookie-based authentication is not supported
        if self.config.do_auth:
            api_key = self.config.api_key or os.environ.get("STASH_API_KEY")
            if not api_key:
                raise NotifyError(
                    "authentication requested but API key is unset "
                    "(hint: set the STASH_API_KEY environment variable)"
                )
            headers["ApiKey"] = api_key

        return headers

    def send_scan_request(self) -> httpx.Response:
        """
        POST the scan mutation

        Raises:
            NotifyError: request could not be built or sent, or Stash
                answered with an error status
        """
        if not self.config.endpoint:
            raise NotifyError("Stash API endpoint is unset")

        headers = self._headers()
        try:
            response = self.client.post(
                self.config.endpoint,
                content=self.scan_body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise NotifyError(f"error making http request: {e}") from e

        if response.is_error:
            raise NotifyError(
                f"Stash API error: {response.status_code} - {response.text[:200]}"
            )
        return response

    def trigger_scan(self) -> bool:
        """Request a scan, logging instead of raising on failure"""
        try:
            self.send_scan_request()
            return True
        except NotifyError as e:
            logger.error(f"Scan request failed: {e}")
            return False

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
