"""Rain Bird SIP command and response tables.

Commands are looked up by name, responses by the opcode in the first byte
of the reply payload. Positions and widths are counted in hex characters.
"""

from dataclasses import dataclass
from enum import Enum, auto

from .errors import UnknownCommandError, UnknownResponseCodeError

NAK_OPCODE = "00"
ACK_OPCODE = "01"


class Conversion(Enum):
    """Field conversion applied to a decoded response."""
    NONE = auto()
    DECIMAL = auto()
    BOOLEAN = auto()
    ACTIVE_ZONE = auto()
    ACKNOWLEDGE = auto()
    NOT_ACKNOWLEDGE = auto()


@dataclass(frozen=True)
class CommandSpec:
    name: str
    opcode: str
    length: int
    response: str
    param_widths: tuple[int, ...] = ()


@dataclass(frozen=True)
class FieldSpec:
    name: str
    position: int
    width: int

    def extract(self, payload: str) -> str:
        return payload[self.position:self.position + self.width]


@dataclass(frozen=True)
class ResponseSpec:
    opcode: str
    type: str
    length: int
    fields: tuple[FieldSpec, ...]
    conversion: Conversion = Conversion.NONE


def _command(name: str, opcode: str, length: int, response: str,
             *param_widths: int) -> CommandSpec:
    return CommandSpec(name, opcode, length, response, tuple(param_widths))


def _response(opcode: str, type_: str, length: int,
              fields: list[tuple[str, int, int]],
              conversion: Conversion = Conversion.NONE) -> ResponseSpec:
    return ResponseSpec(
        opcode, type_, length,
        tuple(FieldSpec(*f) for f in fields),
        conversion,
    )


COMMANDS: dict[str, CommandSpec] = {c.name: c for c in [
    _command("ModelAndVersionRequest", "02", 1, "82"),
    _command("AvailableStationsRequest", "03", 2, "83", 2),
    _command("CommandSupportRequest", "04", 2, "84", 2),
    _command("SerialNumberRequest", "05", 1, "85"),
    _command("CurrentTimeRequest", "10", 1, "90"),
    _command("CurrentDateRequest", "12", 1, "92"),
    _command("WaterBudgetRequest", "30", 2, "B0", 2),
    _command("ZonesSeasonalAdjustFactorRequest", "32", 2, "B2", 2),
    _command("RainDelayGetRequest", "36", 1, "B6"),
    _command("RainDelaySetRequest", "37", 3, ACK_OPCODE, 4),
    _command("ManuallyRunProgramRequest", "38", 2, ACK_OPCODE, 2),
    _command("ManuallyRunStationRequest", "39", 4, ACK_OPCODE, 4, 2),
    _command("TestStationsRequest", "3A", 2, ACK_OPCODE, 2),
    _command("CurrentRainSensorStateRequest", "3E", 1, "BE"),
    _command("CurrentStationsActiveRequest", "3F", 2, "BF", 2),
    _command("StopIrrigationRequest", "40", 1, ACK_OPCODE),
    _command("AdvanceStationRequest", "42", 2, ACK_OPCODE, 2),
    _command("CurrentIrrigationStateRequest", "48", 1, "C8"),
    _command("CurrentControllerStateSet", "49", 2, ACK_OPCODE, 2),
    _command("ControllerEventTimestampRequest", "4A", 2, "CA", 2),
    _command("CombinedControllerStateRequest", "4C", 1, "CC"),
]}


RESPONSES: dict[str, ResponseSpec] = {r.opcode: r for r in [
    _response(NAK_OPCODE, "NotAcknowledgeResponse", 3, [
        ("command_echo", 2, 2),
        ("nak_code", 4, 2),
    ], Conversion.NOT_ACKNOWLEDGE),
    _response(ACK_OPCODE, "AcknowledgeResponse", 2, [
        ("command_echo", 2, 2),
    ], Conversion.ACKNOWLEDGE),
    _response("82", "ModelAndVersionResponse", 5, [
        ("model_id", 2, 4),
        ("protocol_revision_major", 6, 2),
        ("protocol_revision_minor", 8, 2),
    ]),
    _response("83", "AvailableStationsResponse", 6, [
        ("page_number", 2, 2),
        ("set_stations", 4, 8),
    ]),
    _response("84", "CommandSupportResponse", 3, [
        ("command_echo", 2, 2),
        ("support", 4, 2),
    ]),
    _response("85", "SerialNumberResponse", 9, [
        ("serial_number", 2, 16),
    ]),
    _response("90", "CurrentTimeResponse", 4, [
        ("hour", 2, 2),
        ("minute", 4, 2),
        ("second", 6, 2),
    ], Conversion.DECIMAL),
    # Month is a single nibble, year the remaining three
    _response("92", "CurrentDateResponse", 4, [
        ("day", 2, 2),
        ("month", 4, 1),
        ("year", 5, 3),
    ], Conversion.DECIMAL),
    _response("B0", "WaterBudgetResponse", 4, [
        ("program_code", 2, 2),
        ("seasonal_adjust", 4, 4),
    ]),
    _response("B2", "ZonesSeasonalAdjustFactorResponse", 18, [
        ("program_code", 2, 2),
        ("stations_seasonal_adjust", 4, 32),
    ]),
    _response("B6", "RainDelaySettingResponse", 3, [
        ("delay_setting", 2, 4),
    ], Conversion.DECIMAL),
    _response("BE", "CurrentRainSensorStateResponse", 2, [
        ("sensor_state", 2, 2),
    ], Conversion.BOOLEAN),
    _response("BF", "CurrentStationsActiveResponse", 6, [
        ("page_number", 2, 2),
        ("active_stations", 4, 8),
    ], Conversion.ACTIVE_ZONE),
    _response("C8", "CurrentIrrigationStateResponse", 2, [
        ("irrigation_state", 2, 2),
    ], Conversion.BOOLEAN),
    _response("CA", "ControllerEventTimestampResponse", 6, [
        ("event_id", 2, 2),
        ("timestamp", 4, 8),
    ]),
    _response("CC", "CombinedControllerStateResponse", 16, [
        ("hour", 2, 2),
        ("minute", 4, 2),
        ("second", 6, 2),
        ("day", 8, 2),
        ("month", 10, 1),
        ("year", 11, 3),
        ("delay_setting", 14, 4),
        ("sensor_state", 18, 2),
        ("irrigation_state", 20, 2),
        ("seasonal_adjust", 22, 4),
        ("remaining_runtime", 26, 4),
        ("active_station", 30, 2),
    ]),
]}


def get_command(name: str) -> CommandSpec:
    """Look up a command by name."""
    try:
        return COMMANDS[name]
    except KeyError:
        raise UnknownCommandError(name) from None


def get_response(opcode: str) -> ResponseSpec:
    """Look up a response by its opcode (case-insensitive)."""
    try:
        return RESPONSES[opcode.upper()]
    except KeyError:
        raise UnknownResponseCodeError(opcode) from None
