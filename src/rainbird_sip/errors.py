"""Exceptions raised by the Rain Bird SIP client.

Every failure of a single exchange is reported as exactly one of these.
Nothing is retried.
"""


class RainBirdError(Exception):
    """Base class for all Rain Bird client errors."""


class UnknownCommandError(RainBirdError):
    """Command name has no registry entry."""

    def __init__(self, name: str):
        super().__init__(f"Unknown command: {name}")
        self.name = name


class ParameterLengthError(RainBirdError):
    """Assembled command frame does not match the declared length."""

    def __init__(self, command: str, expected: int, actual: int):
        super().__init__(
            f"{command}: frame is {actual} hex chars, expected {expected}")
        self.command = command
        self.expected = expected
        self.actual = actual


class InvalidParameterError(ParameterLengthError):
    """A command parameter cannot be encoded as a hex integer."""

    def __init__(self, command: str, value):
        RainBirdError.__init__(
            self, f"{command}: parameter {value!r} is not an integer")
        self.command = command
        self.value = value
        self.expected = None
        self.actual = None


class SealingError(RainBirdError):
    """Request body could not be serialized or encrypted."""


class TransportError(RainBirdError):
    """Exchange with the controller failed at the HTTP level."""

    def __init__(self, status: int | None, message: str):
        if status is None:
            super().__init__(message)
        else:
            super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class MalformedEnvelopeError(RainBirdError):
    """Reply could not be decrypted, decoded or parsed as JSON."""


class InvalidEnvelopeShapeError(RainBirdError):
    """Reply JSON carries neither a usable result nor an error object."""


class DeviceProtocolError(RainBirdError):
    """Controller rejected the request."""

    def __init__(self, code: int | None, message: str):
        super().__init__(
            f"Received error from Rain Bird controller {code}: {message}")
        self.code = code
        self.message = message


class NotAcknowledgedError(DeviceProtocolError):
    """Controller answered with a SIP negative acknowledge."""

    def __init__(self, code: int, command_echo: str):
        super().__init__(code, f"command {command_echo} not acknowledged")
        self.command_echo = command_echo


class UnknownResponseCodeError(RainBirdError):
    """Reply opcode has no registry entry."""

    def __init__(self, code: str):
        super().__init__(f"Response code not found: {code}")
        self.code = code


class ResponseLengthError(RainBirdError):
    """Reply payload length does not match the declared length."""

    def __init__(self, expected: int, actual: int, payload: str = ""):
        super().__init__(
            f"Invalid response length: expected {expected} bytes, "
            f"got {actual} ({payload})")
        self.expected = expected
        self.actual = actual
        self.payload = payload


class UnexpectedResponseError(RainBirdError):
    """Reply decoded to a response type the command does not produce."""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Unexpected response code {actual}, expected {expected}")
        self.expected = expected
        self.actual = actual


class MalformedHexError(RainBirdError, ValueError):
    """Text is not a hexadecimal string."""

    def __init__(self, text: str):
        super().__init__(f"Malformed hex string: {text!r}")
        self.text = text
