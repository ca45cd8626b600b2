"""
Unit tests for the Microsoft Graph client and token manager.
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from docsync.connectors.sharepoint.graph_client import GraphClient, TokenManager


def token_response(request):
    return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})


def make_client(handler, max_retries=3):
    def route(request):
        if request.url.host == "login.microsoftonline.com":
            return token_response(request)
        return handler(request)

    token_manager = TokenManager("tenant", "client", client_secret="secret")
    return GraphClient(
        token_manager,
        max_retries=max_retries,
        retry_delay_seconds=0,
        transport=httpx.MockTransport(route),
    )


class TestTokenManager:
    """Test token acquisition and expiry."""

    def test_default_token_url(self):
        """Test the tenant's v2.0 endpoint is used by default."""
        manager = TokenManager("tenant-1", "client", client_secret="secret")
        assert manager.token_url == "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/token"

    def test_token_expiry_threshold(self):
        """Test tokens are treated as expired after 50 minutes."""
        manager = TokenManager("t", "c", client_secret="s")
        assert manager.is_token_expired() is True

        manager._token = "tok"
        manager._token_acquired_at = time.time()
        assert manager.is_token_expired() is False

        manager._token_acquired_at = time.time() - 51 * 60
        assert manager.is_token_expired() is True

    def test_headers_require_token(self):
        """Test headers cannot be built before a token exists."""
        with pytest.raises(RuntimeError):
            TokenManager("t", "c", client_secret="s").get_headers()

    @pytest.mark.asyncio
    async def test_client_credentials_grant(self):
        """Test the client credentials form is posted."""
        seen = {}

        def handler(request):
            seen["body"] = request.content.decode()
            return token_response(request)

        manager = TokenManager("t", "client-1", client_secret="s3cret")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            token = await manager.get_valid_token(client)

        assert token == "tok"
        assert "grant_type=client_credentials" in seen["body"]
        assert "client_id=client-1" in seen["body"]

    @pytest.mark.asyncio
    async def test_certificate_credential(self):
        """Test certificate auth goes through CertificateCredential."""
        credential = MagicMock()
        credential.get_token = AsyncMock(return_value=MagicMock(token="cert-token"))
        credential.close = AsyncMock()

        with patch(
            "docsync.connectors.sharepoint.graph_client.CertificateCredential", return_value=credential
        ) as credential_cls:
            manager = TokenManager("t", "c", certificate_path="/certs/app.pem")
            token = await manager.refresh_token(MagicMock())
            await manager.close()

        credential_cls.assert_called_once_with("t", "c", "/certs/app.pem")
        credential.get_token.assert_awaited_once_with("https://graph.microsoft.com/.default")
        credential.close.assert_awaited_once()
        assert token == "cert-token"


class TestGraphClientRetries:
    """Test retry behaviour for transient failures."""

    @pytest.mark.asyncio
    async def test_absolute_urls_kept(self):
        """Test next links are requested as given."""
        client = make_client(lambda r: httpx.Response(200, json={}))
        assert client.url("https://graph.microsoft.com/v1.0/x?token=1") == "https://graph.microsoft.com/v1.0/x?token=1"
        assert client.url("/sites/a") == "https://graph.microsoft.com/v1.0/sites/a"
        await client.close()

    @pytest.mark.asyncio
    async def test_401_refreshes_token(self):
        """Test a 401 refreshes the token and retries."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(401, json={})
            return httpx.Response(200, json={"ok": True})

        client = make_client(handler)
        assert await client.get_json("/me") == {"ok": True}
        assert len(calls) == 2
        assert client.token_manager._refresh_count == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_429_honours_retry_after(self):
        """Test throttled requests wait for Retry-After."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429, headers={"Retry-After": "7"}, json={})
            return httpx.Response(200, json={"ok": True})

        client = make_client(handler)
        with patch("docsync.connectors.sharepoint.graph_client.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await client.get_json("/me") == {"ok": True}
        sleep.assert_awaited_once_with(7.0)
        await client.close()

    @pytest.mark.asyncio
    async def test_server_errors_exhaust_retries(self):
        """Test 5xx responses are retried then surfaced."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, json={})

        client = make_client(handler, max_retries=2)
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_json("/me")
        assert len(calls) == 3
        await client.close()

    @pytest.mark.asyncio
    async def test_network_errors_retried(self):
        """Test connection errors are retried and re-raised when persistent."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler, max_retries=1)
        with pytest.raises(httpx.ConnectError):
            await client.request("GET", "/me")
        assert len(calls) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_client_errors_not_retried(self):
        """Test other 4xx responses are returned immediately."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404, json={})

        client = make_client(handler)
        response = await client.request("GET", "/missing")
        assert response.status_code == 404
        assert len(calls) == 1
        await client.close()


class TestGraphClientDownload:
    """Test streamed content downloads."""

    @pytest.mark.asyncio
    async def test_download_retries_server_errors(self):
        """Test a transient 503 on a content request is retried."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, json={})
            return httpx.Response(200, content=b"data")

        client = make_client(handler)
        assert await client.download("/drives/d/items/i/content") == b"data"
        assert len(calls) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_download_refreshes_token_on_401(self):
        """Test a 401 on a content request refreshes the token and retries."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(401, json={})
            return httpx.Response(200, content=b"data")

        client = make_client(handler)
        assert await client.download("/drives/d/items/i/content") == b"data"
        assert client.token_manager._refresh_count == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_download_honours_retry_after(self):
        """Test throttled content requests wait for Retry-After."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429, headers={"Retry-After": "3"}, json={})
            return httpx.Response(200, content=b"data")

        client = make_client(handler)
        with patch("docsync.connectors.sharepoint.graph_client.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await client.download("/drives/d/items/i/content") == b"data"
        sleep.assert_awaited_once_with(3.0)
        await client.close()

    @pytest.mark.asyncio
    async def test_download_client_error_raised(self):
        """Test other 4xx responses raise without retrying."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(403, json={})

        client = make_client(handler)
        with pytest.raises(httpx.HTTPStatusError):
            await client.download("/drives/d/items/i/content")
        assert len(calls) == 1
        await client.close()
