"""Microsoft Graph HTTP client with token management and retries for transient errors."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx
from azure.identity.aio import CertificateCredential

from ...config import settings


logger = logging.getLogger("docsync.sharepoint.graph")


# =============================================================================
# TOKEN MANAGEMENT
# =============================================================================

class TokenManager:
    """
    Manages Microsoft Graph API tokens with automatic refresh.

    Tokens are refreshed proactively before expiration (at 50 minutes)
    or reactively when a 401 error is encountered. Client secrets use the
    client-credentials grant directly; certificates go through
    ``azure.identity.aio.CertificateCredential``.
    """

    # Refresh token at 50 minutes (tokens expire at 60 minutes)
    TOKEN_REFRESH_THRESHOLD_SECONDS = 50 * 60

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: Optional[str] = None,
        certificate_path: Optional[str] = None,
        token_url: Optional[str] = None,
        scope: Optional[str] = None,
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.certificate_path = certificate_path
        self.token_url = token_url or settings.ms_graph_token_url or (
            f"https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
        )
        self.scope = scope or settings.ms_graph_scope
        self._credential: Optional[CertificateCredential] = None
        self._token: Optional[str] = None
        self._token_acquired_at: float = 0
        self._refresh_count = 0

        if not client_secret and certificate_path:
            self._credential = CertificateCredential(tenant_id, client_id, certificate_path)

    @property
    def token(self) -> Optional[str]:
        """Get current token (may be expired - use get_valid_token() instead)."""
        return self._token

    def is_token_expired(self) -> bool:
        if not self._token:
            return True
        age = time.time() - self._token_acquired_at
        return age >= self.TOKEN_REFRESH_THRESHOLD_SECONDS

    async def get_valid_token(self, client: httpx.AsyncClient) -> str:
        if self.is_token_expired():
            await self.refresh_token(client)
        return self._token

    async def refresh_token(self, client: httpx.AsyncClient) -> str:
        """
        Force refresh the token.

        Args:
            client: httpx client to use for the client-credentials request

        Returns:
            New access token
        """
        if self._credential is not None:
            access_token = await self._credential.get_token(self.scope)
            self._token = access_token.token
        else:
            token_payload = {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
                "scope": self.scope,
            }
            token_resp = await client.post(self.token_url, data=token_payload)
            token_resp.raise_for_status()
            self._token = token_resp.json().get("access_token")

        if not self._token:
            raise RuntimeError("No access_token returned from Microsoft identity platform.")

        self._token_acquired_at = time.time()
        self._refresh_count += 1

        if self._refresh_count > 1:
            logger.info(f"Refreshed Microsoft Graph token (refresh #{self._refresh_count})")

        return self._token

    def get_headers(self) -> Dict[str, str]:
        if not self._token:
            raise RuntimeError("Token not initialized - call get_valid_token() first")
        return {"Authorization": f"Bearer {self._token}"}

    async def close(self) -> None:
        if self._credential is not None:
            await self._credential.close()
            self._credential = None


# =============================================================================
# GRAPH CLIENT
# =============================================================================

# Network failures that are retried with a delay
NETWORK_ERRORS = (
    httpx.ConnectError,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.ConnectTimeout,
    httpx.RemoteProtocolError,
)


class GraphClient:
    """
    Thin async wrapper over ``httpx.AsyncClient`` for Microsoft Graph.

    - 401: token refreshed, request retried
    - 429: waits for ``Retry-After`` (falls back to the retry delay)
    - 5xx / network errors: retried up to ``max_retries`` times
    - other 4xx: returned to the caller
    """

    def __init__(
        self,
        token_manager: TokenManager,
        base_url: Optional[str] = None,
        timeout_ms: int = 30000,
        max_retries: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_manager = token_manager
        self.base_url = (base_url or settings.ms_graph_base_url).rstrip("/")
        self.max_retries = settings.sharepoint_max_retries if max_retries is None else max_retries
        self.retry_delay_seconds = (
            settings.sharepoint_retry_delay_seconds if retry_delay_seconds is None else retry_delay_seconds
        )
        self._client = httpx.AsyncClient(
            timeout=timeout_ms / 1000,
            follow_redirects=True,
            transport=transport,
        )

    def url(self, path: str) -> str:
        """Absolute links (nextLink / deltaLink) are used as given."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request with retries; the final response is returned unchecked."""
        return await self._send_with_retries(method, path, params=params)

    async def _send_with_retries(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        stream: bool = False,
    ) -> httpx.Response:
        url = self.url(path)
        last_error: Optional[Exception] = None
        response: Optional[httpx.Response] = None

        for attempt in range(self.max_retries + 1):
            await self.token_manager.get_valid_token(self._client)
            delay = self.retry_delay_seconds

            try:
                request = self._client.build_request(
                    method, url, params=params, headers=self.token_manager.get_headers()
                )
                response = await self._client.send(request, stream=stream)
            except NETWORK_ERRORS as e:
                last_error = e
                error_msg = str(e) or type(e).__name__
            else:
                status = response.status_code
                if status == 401 and attempt < self.max_retries:
                    logger.info("Graph returned 401, refreshing token")
                    await response.aclose()
                    await self.token_manager.refresh_token(self._client)
                    continue
                if status == 429:
                    delay = _retry_after_seconds(response, delay)
                    error_msg = "HTTP 429"
                elif status >= 500:
                    error_msg = f"HTTP {status}"
                else:
                    return response
                last_error = None

            if attempt < self.max_retries:
                if response is not None and last_error is None:
                    await response.aclose()
                logger.warning(
                    f"Transient error (attempt {attempt + 1}/{self.max_retries + 1}): {error_msg}. "
                    f"Waiting {delay}s before retry..."
                )
                await asyncio.sleep(delay)

        if last_error is not None:
            raise last_error
        return response

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self.request("GET", path, params=params)
        response.raise_for_status()
        return response.json()

    async def download(self, path: str) -> bytes:
        """Stream a content endpoint into memory, with the same retries as ``request``."""
        response = await self._send_with_retries("GET", path, stream=True)
        try:
            response.raise_for_status()
            return b"".join([chunk async for chunk in response.aiter_bytes()])
        finally:
            await response.aclose()

    async def close(self) -> None:
        await self._client.aclose()
        await self.token_manager.close()


def _retry_after_seconds(response: httpx.Response, default: float) -> float:
    value = response.headers.get("Retry-After")
    if value is None:
        return default
    try:
        return max(float(value), 0)
    except ValueError:
        return default
