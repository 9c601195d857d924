"""Request state machine for a single tunnelSip exchange."""

import logging
from collections.abc import Sequence
from enum import IntEnum, auto

from .commands import CommandSpec, get_command
from .crypto import seal, unseal
from .errors import (
    DeviceProtocolError,
    InvalidEnvelopeShapeError,
    NotAcknowledgedError,
    RainBirdError,
    ResponseLengthError,
    UnexpectedResponseError,
)
from .sip import DecodedResponse, build_frame, decode_response, from_hex, make_body

logger = logging.getLogger(__name__)


class ExchangeState(IntEnum):
    """Steps of one request/response exchange, in order."""
    RESOLVING = auto()
    BUILDING = auto()
    SEALING = auto()
    AWAITING_TRANSPORT = auto()
    UNSEALING = auto()
    VALIDATING_ENVELOPE = auto()
    DECODING = auto()
    DONE = auto()
    FAILED = auto()


def validate_envelope(message) -> tuple[str, int]:
    """
    Check the decrypted reply shape and return (data, length).

    {"result": {"data": <hex>, "length": <int>}} passes,
    {"error": {"code": ..., "message": ...}} raises DeviceProtocolError,
    anything else raises InvalidEnvelopeShapeError.
    """
    if not isinstance(message, dict):
        raise InvalidEnvelopeShapeError(
            f"Reply is not a JSON object: {type(message).__name__}")

    error = message.get("error")
    if isinstance(error, dict):
        raise DeviceProtocolError(error.get("code"), str(error.get("message", "")))

    result = message.get("result")
    if not isinstance(result, dict):
        raise InvalidEnvelopeShapeError("Invalid response received")

    data = result.get("data")
    length = result.get("length")
    if not isinstance(data, str) or isinstance(length, bool) or not isinstance(length, int):
        raise InvalidEnvelopeShapeError(f"Invalid result object: {result}")

    if len(data) != length * 2:
        raise ResponseLengthError(length, len(data) // 2, data)
    return data, length


class SipExchange:
    """
    One Rain Bird request, from command name to decoded response.

    Pattern: body = build_request(); reply = <transport>; process_reply(reply)

    - build_request() resolves, builds and seals the request
    - fail(error) records a transport failure
    - process_reply(data) unseals, validates and decodes the reply

    Any error moves the exchange to FAILED and is re-raised.
    """

    def __init__(self, command: str, params: Sequence[int], password: str,
                 debug: bool = False):
        self.command = command
        self.params = tuple(params)
        self.password = password
        self.debug = debug

        self.state = ExchangeState.RESOLVING
        self.spec: CommandSpec | None = None
        self.frame: str | None = None
        self.response: DecodedResponse | None = None
        self.error: RainBirdError | None = None

    def _expect(self, state: ExchangeState):
        if self.state != state:
            raise RuntimeError(
                f"{self.command}: expected state {state.name}, in {self.state.name}")

    def fail(self, error: RainBirdError):
        """Move to FAILED, recording the error."""
        logger.debug(f"[failed]      {self.command} in {self.state.name}: {error}")
        self.error = error
        self.state = ExchangeState.FAILED

    def build_request(self) -> bytes:
        """Resolve the command, build its frame and return the sealed body."""
        self._expect(ExchangeState.RESOLVING)
        try:
            self.spec = get_command(self.command)

            self.state = ExchangeState.BUILDING
            self.frame = build_frame(self.spec, self.params)

            self.state = ExchangeState.SEALING
            body = make_body(self.frame, self.spec.length)
            if self.debug:
                logger.debug(f"[send]        {self.command} body={body}")
            sealed = seal(body, self.password)
        except RainBirdError as exc:
            self.fail(exc)
            raise

        self.state = ExchangeState.AWAITING_TRANSPORT
        return sealed

    def process_reply(self, data: bytes) -> DecodedResponse:
        """Unseal, validate and decode the controller's reply."""
        self._expect(ExchangeState.AWAITING_TRANSPORT)
        try:
            self.state = ExchangeState.UNSEALING
            message = unseal(data, self.password)
            if self.debug:
                logger.debug(f"[reply]       {self.command} body={message}")

            self.state = ExchangeState.VALIDATING_ENVELOPE
            payload, _ = validate_envelope(message)

            self.state = ExchangeState.DECODING
            response = decode_response(payload)
            if response.is_nak:
                raise NotAcknowledgedError(
                    from_hex(response["nak_code"]), response["command_echo"])
            if response.opcode != self.spec.response:
                raise UnexpectedResponseError(self.spec.response, response.opcode)
        except RainBirdError as exc:
            self.fail(exc)
            raise

        self.response = response
        self.state = ExchangeState.DONE
        return response

    def is_done(self) -> bool:
        return self.state == ExchangeState.DONE

    def is_failed(self) -> bool:
        return self.state == ExchangeState.FAILED

    def get_state_name(self) -> str:
        return self.state.name
