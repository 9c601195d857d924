"""SIP frame building and response decoding.

SIP payloads travel as uppercase hex strings:
    [opcode (2 hex chars)][fields...]

Commands are an opcode followed by fixed-width parameters. Responses are
split into named fields using the windows declared in the registry.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .commands import NAK_OPCODE, CommandSpec, Conversion, get_response
from .errors import (
    InvalidParameterError,
    MalformedHexError,
    ParameterLengthError,
    ResponseLengthError,
)

REQUEST_ID = 9
SIP_METHOD = "tunnelSip"

_HEX_RE = re.compile(r"[0-9A-Fa-f]+")


def to_hex(value: int, min_width: int = 2) -> str:
    """Uppercase hex of abs(value), zero-padded to at least min_width."""
    return format(abs(value), "X").zfill(min_width)


def from_hex(text: str) -> int:
    """Parse an unsigned hex string. Rejects prefixes, signs and spaces."""
    if not isinstance(text, str) or not _HEX_RE.fullmatch(text):
        raise MalformedHexError(text)
    return int(text, 16)


def build_frame(spec: CommandSpec, params: Sequence[int] = ()) -> str:
    """Build the hex payload for a command: opcode + encoded parameters.

    Parameters must be integers but are not range-checked. An overflowed
    or missing parameter shows up as a frame whose length differs from
    the declared one.
    """
    for value in params:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidParameterError(spec.name, value)

    frame = spec.opcode
    for value, width in zip(params, spec.param_widths):
        frame += to_hex(value, width)
    # Surplus parameters have no declared width, encode at the default
    for value in params[len(spec.param_widths):]:
        frame += to_hex(value)

    if len(frame) != spec.length * 2:
        raise ParameterLengthError(spec.name, spec.length * 2, len(frame))
    return frame


def make_body(frame: str, length: int) -> dict:
    """Wrap a SIP frame in the tunnelSip JSON-RPC request object."""
    return {
        "id": REQUEST_ID,
        "jsonrpc": "2.0",
        "method": SIP_METHOD,
        "params": {"data": frame, "length": length},
    }


def active_zone(stations: str) -> int:
    """1-based index of the first set bit in a station bitmask, or 0.

    The mask is read one byte (2 hex chars) at a time, each byte LSB
    first, so "20000000" is zone 6 and "00010000" is zone 9.
    """
    for index in range(0, len(stations), 2):
        byte = from_hex(stations[index:index + 2])
        if byte:
            return index * 4 + (byte & -byte).bit_length()
    return 0


@dataclass
class DecodedResponse:
    """A decoded SIP reply: discriminator plus named field values."""
    type: str
    opcode: str
    fields: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    @property
    def is_nak(self) -> bool:
        return self.opcode == NAK_OPCODE


def _convert(fields: dict[str, Any], conversion: Conversion) -> None:
    if conversion is Conversion.DECIMAL:
        for key, value in fields.items():
            fields[key] = from_hex(value)
    elif conversion is Conversion.BOOLEAN:
        for key, value in fields.items():
            fields[key] = bool(from_hex(value))
    elif conversion is Conversion.ACTIVE_ZONE:
        fields["active_zone"] = active_zone(fields["active_stations"])
    elif conversion is Conversion.ACKNOWLEDGE:
        fields["ack"] = True
    elif conversion is Conversion.NOT_ACKNOWLEDGE:
        fields["ack"] = False


def decode_response(payload: str) -> DecodedResponse:
    """Decode a SIP reply payload using the response registry.

    Raises MalformedHexError, UnknownResponseCodeError or
    ResponseLengthError. Nothing is returned unless every step succeeds.
    """
    if not isinstance(payload, str) or not _HEX_RE.fullmatch(payload):
        raise MalformedHexError(payload)

    spec = get_response(payload[:2])
    if len(payload) != spec.length * 2:
        raise ResponseLengthError(spec.length, len(payload) // 2, payload)

    fields = {f.name: f.extract(payload) for f in spec.fields}
    _convert(fields, spec.conversion)
    return DecodedResponse(type=spec.type, opcode=spec.opcode, fields=fields)
