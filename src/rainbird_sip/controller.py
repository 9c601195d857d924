"""High-level Rain Bird controller interface."""

import logging

from .errors import RainBirdError
from .protocol import SipExchange
from .sip import DecodedResponse
from .transport import HttpTransport, Transport

logger = logging.getLogger(__name__)


class RainBirdController:
    """Rain Bird controller reachable over the local network.

    Usage:
        controller = RainBirdController("192.168.1.20", password)
        response = await controller.get_time()
        response["hour"], response["minute"]
        await controller.start_zone(3, minutes=10)

    Each call is one independent exchange. Errors are subclasses of
    RainBirdError; nothing is retried.
    """

    def __init__(self, address: str, password: str, *,
                 transport: Transport | None = None, debug: bool = False):
        self.address = address
        self.password = password
        self.transport = transport if transport is not None else HttpTransport()
        self.debug = debug

    async def request(self, command: str, *params: int) -> DecodedResponse:
        """Run one exchange for a named command and return the decoded reply."""
        logger.debug(f"[request]     {command} from {self.address}")
        exchange = SipExchange(command, params, self.password, debug=self.debug)
        body = exchange.build_request()

        try:
            reply = await self.transport.exchange(self.address, body)
        except RainBirdError as exc:
            exchange.fail(exc)
            raise

        response = exchange.process_reply(reply)
        logger.debug(f"[response]    {command} -> {response.type}")
        return response

    # Queries

    async def get_model_and_version(self) -> DecodedResponse:
        """Model ID and protocol revision."""
        return await self.request("ModelAndVersionRequest")

    async def get_time(self) -> DecodedResponse:
        return await self.request("CurrentTimeRequest")

    async def get_date(self) -> DecodedResponse:
        return await self.request("CurrentDateRequest")

    async def get_serial_number(self) -> DecodedResponse:
        """Serial number (all zeros on ESP-RZXe)."""
        return await self.request("SerialNumberRequest")

    async def get_rain_sensor_state(self) -> DecodedResponse:
        return await self.request("CurrentRainSensorStateRequest")

    async def get_rain_delay(self) -> DecodedResponse:
        """Watering delay in days."""
        return await self.request("RainDelayGetRequest")

    async def get_available_zones(self, page: int = 0) -> DecodedResponse:
        """Bitmask of available stations, one bit per zone."""
        return await self.request("AvailableStationsRequest", page)

    async def get_irrigation_state(self) -> DecodedResponse:
        return await self.request("CurrentIrrigationStateRequest")

    async def get_active_zone(self, page: int = 0) -> DecodedResponse:
        """Active zone number in "active_zone", 0 when none is running."""
        return await self.request("CurrentStationsActiveRequest", page)

    async def get_command_support(self, command_code: int) -> DecodedResponse:
        return await self.request("CommandSupportRequest", command_code)

    async def get_water_budget(self, program: int) -> DecodedResponse:
        return await self.request("WaterBudgetRequest", program)

    async def get_zones_seasonal_adjust(self, program: int) -> DecodedResponse:
        return await self.request("ZonesSeasonalAdjustFactorRequest", program)

    async def get_event_timestamp(self, event_id: int) -> DecodedResponse:
        return await self.request("ControllerEventTimestampRequest", event_id)

    async def get_combined_state(self) -> DecodedResponse:
        """Time, date, rain delay, sensor and irrigation state in one reply."""
        return await self.request("CombinedControllerStateRequest")

    # Commands

    async def stop_irrigation(self) -> DecodedResponse:
        return await self.request("StopIrrigationRequest")

    async def set_rain_delay(self, days: int) -> DecodedResponse:
        """Set the watering delay, 0 to 14 days."""
        return await self.request("RainDelaySetRequest", days)

    async def start_zone(self, zone: int, minutes: int) -> DecodedResponse:
        """Run one zone; any other active zone is stopped."""
        return await self.request("ManuallyRunStationRequest", zone, minutes)

    async def start_all_zones(self, minutes: int) -> DecodedResponse:
        """Run every zone in turn for the given minutes each."""
        return await self.request("TestStationsRequest", minutes)

    async def start_program(self, program: int) -> DecodedResponse:
        # Not supported on ESP-RZXe
        return await self.request("ManuallyRunProgramRequest", program)

    async def advance_zone(self, param: int = 0) -> DecodedResponse:
        return await self.request("AdvanceStationRequest", param)

    async def set_controller_state(self, state: int) -> DecodedResponse:
        return await self.request("CurrentControllerStateSet", state)
