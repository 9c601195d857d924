"""Fake transport for replay testing."""

from typing import Any

from .crypto import seal, unseal
from .errors import TransportError


class FakeTransport:
    """
    Controller simulator for replay testing.

    Acts like a real controller: unseals each request, verifies it against
    the transcript, and answers with the recorded reply sealed under the
    same password.

    Transcript events look like:
        {"request": {"data": "3F00", "length": 2},
         "reply": {"result": {"data": "BF0020000000", "length": 6}}}
    A "status" key instead of "reply" makes the exchange fail with that
    HTTP status, and "raw" (hex) replies with bytes verbatim.
    """

    def __init__(self, password: str, transcript: dict[str, Any]):
        self.password = password
        self.transcript = transcript
        self.event_ptr = 0
        self.requests: list[dict] = []

    async def exchange(self, address: str, body: bytes) -> bytes:
        """Verify request matches transcript, then return the sealed reply."""
        events = self.transcript["events"]
        request = unseal(body, self.password)
        self.requests.append(request)

        if self.event_ptr >= len(events):
            raise RuntimeError(
                f"Client sent beyond transcript end\n"
                f"  Request: {request}"
            )

        event = events[self.event_ptr]
        expected = {
            "id": 9,
            "jsonrpc": "2.0",
            "method": "tunnelSip",
            "params": event["request"],
        }
        if request != expected:
            raise AssertionError(
                f"Request mismatch at event {self.event_ptr}:\n"
                f"  Expected: {expected}\n"
                f"  Got:      {request}"
            )

        self.event_ptr += 1
        if "status" in event:
            raise TransportError(event["status"], event.get("reason", "Error"))
        if "raw" in event:
            return bytes.fromhex(event["raw"])

        reply = {"id": 9, "jsonrpc": "2.0", **event["reply"]}
        return seal(reply, self.password)

    def verify_complete(self):
        """Verify all transcript events were consumed."""
        events = self.transcript["events"]
        if self.event_ptr != len(events):
            raise AssertionError(
                f"Transcript not fully replayed:\n"
                f"  Consumed: {self.event_ptr}/{len(events)}\n"
                f"  Next request: {events[self.event_ptr]['request']}"
            )
