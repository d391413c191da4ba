"""Tests for compoundgate/core/http.py - HTTP client factory."""

import anyio
import httpx
import pytest

from compoundgate.core import http as http_module


async def _close_and_reset_client_async() -> None:
    if http_module._identity_toolkit_client is not None:
        await http_module._identity_toolkit_client.aclose()
    http_module._identity_toolkit_client = None


def _close_and_reset_client() -> None:
    """Close and reset the Identity Toolkit client singleton (for test cleanup)."""
    anyio.run(_close_and_reset_client_async)


@pytest.fixture
def reset_identity_toolkit_client():
    _close_and_reset_client()
    yield
    _close_and_reset_client()


class TestCreateHttpClient:
    """Unit tests for create_http_client factory."""

    @pytest.mark.asyncio
    async def test_default_timeouts(self):
        """Test that default timeout values are applied."""
        client = http_module.create_http_client(base_url="https://example.com")
        try:
            timeout = client.timeout

            assert isinstance(client, httpx.AsyncClient)
            assert timeout.connect == http_module.DEFAULT_CONNECT_TIMEOUT
            assert timeout.read == http_module.DEFAULT_READ_TIMEOUT
            assert timeout.write == http_module.DEFAULT_WRITE_TIMEOUT
            assert timeout.pool == http_module.DEFAULT_POOL_TIMEOUT
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_custom_timeouts(self):
        client = http_module.create_http_client(
            connect_timeout=1.0,
            read_timeout=2.0,
            write_timeout=3.0,
            pool_timeout=4.0,
        )
        try:
            timeout = client.timeout

            assert timeout.connect == 1.0
            assert timeout.read == 2.0
            assert timeout.write == 3.0
            assert timeout.pool == 4.0
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_default_connection_limits(self):
        client = http_module.create_http_client()
        try:
            limits = client._transport._pool._max_connections  # type: ignore[union-attr]

            assert limits == 20
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_empty_base_url_by_default(self):
        client = http_module.create_http_client()
        try:
            assert client.base_url == httpx.URL("")
        finally:
            await client.aclose()


@pytest.mark.usefixtures("reset_identity_toolkit_client")
class TestIdentityToolkitClient:
    """Singleton getter and shutdown for the Identity Toolkit client."""

    @pytest.mark.asyncio
    async def test_has_identity_toolkit_base_url(self):
        client = http_module.get_identity_toolkit_client()

        assert client.base_url == httpx.URL(http_module.IDENTITY_TOOLKIT_BASE_URL)

    @pytest.mark.asyncio
    async def test_pool_sized_for_otp_bursts(self):
        client = http_module.get_identity_toolkit_client()
        limits = client._transport._pool._max_connections  # type: ignore[union-attr]

        assert limits == 50

    @pytest.mark.asyncio
    async def test_is_singleton(self):
        client1 = http_module.get_identity_toolkit_client()
        client2 = http_module.get_identity_toolkit_client()

        assert client1 is client2

    @pytest.mark.asyncio
    async def test_close_resets_singleton(self):
        client = http_module.get_identity_toolkit_client()

        await http_module.close_identity_toolkit_client()

        assert client.is_closed
        assert http_module._identity_toolkit_client is None

    @pytest.mark.asyncio
    async def test_close_is_safe_without_client(self):
        await http_module.close_identity_toolkit_client()

        assert http_module._identity_toolkit_client is None

    @pytest.mark.asyncio
    async def test_creates_new_client_after_close(self):
        client1 = http_module.get_identity_toolkit_client()
        await http_module.close_identity_toolkit_client()

        client2 = http_module.get_identity_toolkit_client()

        assert client1 is not client2
        assert not client2.is_closed
