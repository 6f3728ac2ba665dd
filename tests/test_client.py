"""
End-to-end tests for IpfsClient gateway selection and fetching.
"""

import asyncio

import pytest

from ipfs_fetch import (
    DEFAULT_GATEWAY,
    ClientConfig,
    ClientStatus,
    GatewayNode,
    InvalidAddressError,
    IpfsClient,
)
from ipfs_fetch.exceptions import NotFoundError, ServerError, TimeoutError
from ipfs_fetch.transport import HttpTransport

from .conftest import DOCS_CID, V0_CID, V1_CID, FakeTransport, GatewayBehaviour


def slow_dweb_transport() -> FakeTransport:
    return FakeTransport(
        behaviours={
            "dweb.link": GatewayBehaviour(delay=0.15),
            "cf-ipfs.com": GatewayBehaviour(),
        }
    )


class TestGatewaySelection:
    """Test init() discovery, ranking and selection."""

    @pytest.mark.asyncio
    async def test_fastest_gateway_chosen(self):
        transport = slow_dweb_transport()
        client = IpfsClient(transport=transport)

        await client.init()

        assert client.chosen_gateway.host == "cf-ipfs.com"
        assert [node.host for node in client.gateways] == ["cf-ipfs.com", "dweb.link"]
        assert client.gateways[0].speed <= client.gateways[1].speed
        assert client.status == ClientStatus.READY

    @pytest.mark.asyncio
    async def test_fetch_uses_fastest_gateway(self):
        transport = slow_dweb_transport()
        client = IpfsClient(transport=transport)
        await client.init()

        data = await client.read(f"ipfs://{DOCS_CID}/index.html")

        assert data == b"hello from ipfs"
        assert transport.requests[-1] == f"https://{DOCS_CID}.ipfs.cf-ipfs.com/index.html"

    @pytest.mark.asyncio
    async def test_unhealthy_gateway_excluded(self):
        transport = FakeTransport(
            behaviours={
                "dweb.link": GatewayBehaviour(status=500),
                "cf-ipfs.com": GatewayBehaviour(delay=0.05),
            }
        )
        client = IpfsClient(transport=transport)
        await client.init()

        assert [node.host for node in client.gateways] == ["cf-ipfs.com"]
        assert client.chosen_gateway.healthy is True

    @pytest.mark.asyncio
    async def test_foreign_probe_exception_does_not_abort_init(self):
        transport = FakeTransport(
            behaviours={
                "dweb.link": GatewayBehaviour(error=OSError("refused")),
                "cf-ipfs.com": GatewayBehaviour(),
            }
        )
        client = IpfsClient(transport=transport)

        await client.init()

        assert client.chosen_gateway.host == "cf-ipfs.com"
        assert [node.host for node in client.gateways] == ["cf-ipfs.com"]

    @pytest.mark.asyncio
    async def test_every_probe_raising_falls_back_to_default(self):
        transport = FakeTransport(
            behaviours={
                "dweb.link": GatewayBehaviour(error=asyncio.TimeoutError()),
                "cf-ipfs.com": GatewayBehaviour(error=OSError("dns failure")),
            }
        )
        client = IpfsClient(transport=transport)

        await client.init()

        assert client.gateways == (DEFAULT_GATEWAY,)
        assert client.chosen_gateway == DEFAULT_GATEWAY

    @pytest.mark.asyncio
    async def test_all_gateways_fail_falls_back_to_default(self):
        transport = FakeTransport(
            behaviours={
                "dweb.link": GatewayBehaviour(error=TimeoutError("timed out")),
                "cf-ipfs.com": GatewayBehaviour(status=503),
            }
        )
        client = IpfsClient(transport=transport)
        await client.init()

        assert client.gateways == (DEFAULT_GATEWAY,)
        assert client.chosen_gateway == DEFAULT_GATEWAY

        # The fallback is used even though it failed its probe
        transport.behaviours["dweb.link"] = GatewayBehaviour(body=b"recovered")
        assert await client.read(V1_CID) == b"recovered"
        assert transport.requests[-1] == f"https://{V1_CID}.ipfs.dweb.link"

    @pytest.mark.asyncio
    async def test_fallback_is_first_configured_gateway(self):
        local = GatewayNode(host="127.0.0.1:8080", remote=False)
        config = ClientConfig(gateways=[local, GatewayNode(host="dweb.link")])
        client = IpfsClient(config=config, transport=FakeTransport())

        await client.init()

        assert client.chosen_gateway == local
        assert client.url_for(V1_CID) == f"http://127.0.0.1:8080/ipfs/{V1_CID}"

    @pytest.mark.asyncio
    async def test_probes_use_cache_within_interval(self, fake_transport):
        client = IpfsClient(transport=fake_transport)

        await client.init()
        await client.init()

        assert len(fake_transport.requests) == 2

    @pytest.mark.asyncio
    async def test_probe_urls(self, fake_transport):
        client = IpfsClient(transport=fake_transport)
        await client.init()

        probed = sorted(url.split("?")[0] for url in fake_transport.requests)
        assert probed == [
            f"https://{client.config.probe_cid}.ipfs.cf-ipfs.com",
            f"https://{client.config.probe_cid}.ipfs.dweb.link",
        ]
        assert all("?now=" in url for url in fake_transport.requests)


class TestSeededClient:
    """Caller-supplied gateways and chosen gateway win over discovery."""

    @pytest.mark.asyncio
    async def test_seeded_gateways_are_not_probed(self, fake_transport):
        seeded = (GatewayNode(host="cf-ipfs.com", speed=10), GatewayNode(host="dweb.link", speed=20))
        client = IpfsClient(gateways=seeded, transport=fake_transport)

        await client.init()

        assert client.gateways == seeded
        assert client.chosen_gateway == seeded[0]
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_seeded_chosen_gateway_used_for_fetches(self, fake_transport):
        chosen = GatewayNode(host="cf-ipfs.com")
        client = IpfsClient(
            gateways=[chosen], chosen_gateway=chosen, transport=fake_transport
        )

        await client.read("ipns://docs.ipfs.tech")

        assert fake_transport.requests == ["https://cf-ipfs.com/ipns/docs.ipfs.tech"]
        assert client.chosen_gateway is chosen

    @pytest.mark.asyncio
    async def test_seeded_chosen_gateway_kept_after_discovery(self):
        transport = slow_dweb_transport()
        chosen = GatewayNode(host="dweb.link")
        client = IpfsClient(chosen_gateway=chosen, transport=transport)

        await client.init()

        assert client.chosen_gateway is chosen
        assert client.gateways[0] is chosen
        assert [node.host for node in client.gateways] == ["dweb.link", "cf-ipfs.com"]

    @pytest.mark.asyncio
    async def test_empty_seeded_gateways_fall_back_to_default(self, fake_transport):
        client = IpfsClient(gateways=[], transport=fake_transport)
        await client.init()
        assert client.chosen_gateway == DEFAULT_GATEWAY
        assert client.gateways == (DEFAULT_GATEWAY,)
        assert client.gateways[0] == client.chosen_gateway
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_empty_seeded_gateways_keep_chosen_gateway_at_head(self, fake_transport):
        chosen = GatewayNode(host="cf-ipfs.com")
        client = IpfsClient(gateways=[], chosen_gateway=chosen, transport=fake_transport)
        await client.init()
        assert client.gateways == (chosen,)
        assert client.chosen_gateway is chosen


class TestFetching:
    """Test read/open/seek."""

    @pytest.mark.asyncio
    async def test_read_before_init_initialises(self, fake_transport):
        client = IpfsClient(transport=fake_transport)
        assert not client.is_ready

        await client.read(V1_CID)

        assert client.is_ready
        assert client.chosen_gateway is not None

    @pytest.mark.asyncio
    async def test_v0_cid_fetched_via_base32_subdomain(self):
        transport = FakeTransport(behaviours={"dweb.link": GatewayBehaviour()})
        client = IpfsClient(gateways=[DEFAULT_GATEWAY], transport=transport)

        await client.read(V0_CID)

        assert transport.requests == [f"https://{V1_CID}.ipfs.dweb.link"]

    @pytest.mark.asyncio
    async def test_http_url_passed_through(self):
        transport = FakeTransport(behaviours={"example.com": GatewayBehaviour(body=b"plain")})
        client = IpfsClient(gateways=[DEFAULT_GATEWAY], transport=transport)

        assert await client.read("https://example.com/file.txt") == b"plain"
        assert transport.requests == ["https://example.com/file.txt"]

    @pytest.mark.asyncio
    async def test_seek_reads_whole_resource(self, fake_transport):
        client = IpfsClient(gateways=[DEFAULT_GATEWAY], transport=fake_transport)
        assert await client.seek(V1_CID) == await client.read(V1_CID)

    @pytest.mark.asyncio
    async def test_read_raises_on_not_found(self):
        transport = FakeTransport(behaviours={"dweb.link": GatewayBehaviour(status=404)})
        client = IpfsClient(gateways=[DEFAULT_GATEWAY], transport=transport)

        with pytest.raises(NotFoundError) as exc_info:
            await client.read(V1_CID)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_read_raises_on_server_error_without_failover(self, fake_transport):
        fake_transport.behaviours["dweb.link"] = GatewayBehaviour(status=502)
        client = IpfsClient(
            gateways=[DEFAULT_GATEWAY, GatewayNode(host="cf-ipfs.com")],
            transport=fake_transport,
        )

        with pytest.raises(ServerError):
            await client.read(V1_CID)
        assert fake_transport.requests_to("cf-ipfs.com") == []

    @pytest.mark.asyncio
    async def test_open_returns_response_for_any_status(self):
        transport = FakeTransport(
            behaviours={"dweb.link": GatewayBehaviour(status=404, body=b"not found")}
        )
        client = IpfsClient(gateways=[DEFAULT_GATEWAY], transport=transport)

        response = await client.open(f"ipfs://{V1_CID}/missing")

        assert response.status_code == 404
        assert not response.is_success
        assert response.text() == "not found"
        assert response.url == f"https://{V1_CID}.ipfs.dweb.link/missing"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        transport = FakeTransport(
            behaviours={"dweb.link": GatewayBehaviour(error=TimeoutError("slow"))}
        )
        client = IpfsClient(gateways=[DEFAULT_GATEWAY], transport=transport)

        with pytest.raises(TimeoutError):
            await client.read(V1_CID)

    @pytest.mark.asyncio
    async def test_invalid_address_raised_before_fetch(self, fake_transport):
        client = IpfsClient(gateways=[DEFAULT_GATEWAY], transport=fake_transport)

        with pytest.raises(InvalidAddressError) as exc_info:
            await client.read("ipfs://")

        assert exc_info.value.address == "ipfs://"
        assert fake_transport.requests == []

    def test_url_for_before_init_uses_default(self, fake_transport):
        client = IpfsClient(transport=fake_transport)
        assert client.url_for("ipns://example") == "https://dweb.link/ipns/example"


class TestClientIsolation:
    """Instances never share caches or configuration state."""

    @pytest.mark.asyncio
    async def test_instances_have_independent_caches(self, fake_transport):
        first = IpfsClient(transport=fake_transport)
        second = IpfsClient(transport=fake_transport)

        await first.init()
        await second.init()

        assert first.health_checker._cache is not second.health_checker._cache
        assert len(fake_transport.requests) == 4

    @pytest.mark.asyncio
    async def test_config_gateways_not_mutated(self):
        config = ClientConfig()
        before = list(config.gateways)
        client = IpfsClient(config=config, transport=slow_dweb_transport())

        await client.init()

        assert config.gateways == before
        assert all(node.speed is None for node in config.gateways)

    def test_gateway_check_interval_from_config(self):
        client = IpfsClient(config=ClientConfig(gateway_check_interval=2500), transport=FakeTransport())
        assert client.gateway_check_interval == 2500


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_closes_own_transport(self, test_config):
        async with IpfsClient(config=test_config) as client:
            assert isinstance(client.transport, HttpTransport)
            assert client.transport._session is not None
        assert client.transport._session is None

    @pytest.mark.asyncio
    async def test_supplied_transport_left_open(self, test_config):
        transport = HttpTransport(test_config)
        async with transport:
            async with IpfsClient(transport=transport):
                pass
            assert transport._session is not None
