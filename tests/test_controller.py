"""Controller tests against a fake controller and httpx's mock transport."""

import asyncio

import httpx
import pytest

from rainbird_sip._fake_transport import FakeTransport
from rainbird_sip.controller import RainBirdController
from rainbird_sip.crypto import seal, unseal
from rainbird_sip.errors import (
    NotAcknowledgedError,
    ParameterLengthError,
    TransportError,
    UnknownCommandError,
)
from rainbird_sip.transport import HEADERS, HttpTransport

PASSWORD = "secret"
ADDRESS = "192.0.2.10"


def _controller(*events) -> tuple[RainBirdController, FakeTransport]:
    transport = FakeTransport(PASSWORD, {"events": list(events)})
    return RainBirdController(ADDRESS, PASSWORD, transport=transport), transport


def _event(data: str, length: int, reply: str) -> dict:
    return {
        "request": {"data": data, "length": length},
        "reply": {"result": {"data": reply, "length": len(reply) // 2}},
    }


async def test_set_rain_delay():
    controller, transport = _controller(_event("37000E", 3, "0137"))
    response = await controller.set_rain_delay(14)
    assert response["ack"] is True
    transport.verify_complete()


async def test_start_zone():
    controller, transport = _controller(_event("3900020F", 4, "0139"))
    response = await controller.start_zone(2, 15)
    assert response.type == "AcknowledgeResponse"
    transport.verify_complete()


async def test_get_active_zone():
    controller, _ = _controller(_event("3F00", 2, "BF0004000000"))
    response = await controller.get_active_zone()
    assert response["active_zone"] == 3


async def test_supplemental_queries():
    controller, transport = _controller(
        _event("0402", 2, "840201"),
        _event("3000", 2, "B0000064"),
        _event("4C", 1, "CC0E1E0513A7EA000200010064000A03"),
    )
    support = await controller.get_command_support(0x02)
    assert support["support"] == "01"
    budget = await controller.get_water_budget(0)
    assert budget["seasonal_adjust"] == "0064"
    combined = await controller.get_combined_state()
    assert combined["active_station"] == "03"
    transport.verify_complete()


async def test_parameter_error_skips_transport():
    """A bad frame never reaches the network."""
    controller, transport = _controller()
    with pytest.raises(ParameterLengthError):
        await controller.request("ManuallyRunStationRequest", 1)
    assert transport.requests == []


async def test_unknown_command():
    controller, transport = _controller()
    with pytest.raises(UnknownCommandError):
        await controller.request("FloodTheLawnRequest")
    assert transport.requests == []


async def test_nak():
    controller, _ = _controller(_event("3801", 2, "003801"))
    with pytest.raises(NotAcknowledgedError) as excinfo:
        await controller.start_program(1)
    assert excinfo.value.code == 1


async def test_transport_error():
    controller, _ = _controller({"request": {"data": "40", "length": 1}, "status": 403})
    with pytest.raises(TransportError) as excinfo:
        await controller.stop_irrigation()
    assert excinfo.value.status == 403


async def test_concurrent_requests():
    """Concurrent calls each seal with their own IV."""
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        body = unseal(request.content, PASSWORD)
        assert body["params"] == {"data": "10", "length": 1}
        reply = {"id": 9, "jsonrpc": "2.0", "result": {"data": "900E1E05", "length": 4}}
        return httpx.Response(200, content=seal(reply, PASSWORD))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        controller = RainBirdController(ADDRESS, PASSWORD, transport=HttpTransport(client))
        responses = await asyncio.gather(*(controller.get_time() for _ in range(3)))

    assert [r["hour"] for r in responses] == [14, 14, 14]
    assert len({b[32:48] for b in bodies}) == 3


async def test_http_transport_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return httpx.Response(200, content=b"reply")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        reply = await HttpTransport(client).exchange(ADDRESS, b"body")

    assert reply == b"reply"
    assert seen["url"] == "http://192.0.2.10/stick"
    assert seen["headers"]["content-type"] == HEADERS["Content-Type"]
    assert seen["headers"]["user-agent"] == HEADERS["User-Agent"]


async def test_http_transport_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as excinfo:
            await HttpTransport(client).exchange(ADDRESS, b"body")

    assert excinfo.value.status == 503
    assert excinfo.value.message == "Service Unavailable"


async def test_http_transport_connect_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as excinfo:
            await HttpTransport(client).exchange(ADDRESS, b"body")

    assert excinfo.value.status is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


async def test_http_transport_own_client(monkeypatch):
    """Without a client, each exchange opens one with the configured timeout."""
    created = []
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"reply")

    def make_client(**kwargs):
        created.append(kwargs)
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", make_client)
    transport = HttpTransport(timeout=2.5)
    assert await transport.exchange(ADDRESS, b"body") == b"reply"
    assert await transport.exchange(ADDRESS, b"body") == b"reply"
    assert created == [{"timeout": 2.5}, {"timeout": 2.5}]


@pytest.mark.parametrize("address", ["192.0.2.10:notaport", "192.0.2.10:99999999"])
async def test_http_transport_bad_address(address):
    """Unusable addresses are reported as transport errors."""
    with pytest.raises(TransportError) as excinfo:
        await HttpTransport(timeout=1.0).exchange(address, b"body")
    assert excinfo.value.status is None
    assert excinfo.value.__cause__ is not None


async def test_bad_address_through_controller():
    controller = RainBirdController("192.0.2.10:notaport", PASSWORD,
                                    transport=HttpTransport(timeout=1.0))
    with pytest.raises(TransportError):
        await controller.stop_irrigation()
