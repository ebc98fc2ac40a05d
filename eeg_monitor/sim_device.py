"""Drop-in replacement for BleController that emits simulated frames."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from . import config
from .ble import BleDeviceInfo, ConnectError, DeviceFoundCallback, NotificationCallback
from .data_parser import encode_frame
from .simulator import eeg_waveform_generator

logger = logging.getLogger(__name__)

SIM_ADDRESS = "SIM"


class SimulatedTransport:
    """Mimic the BleController API using synthetic signals."""

    def __init__(
        self,
        channels: int = config.EEG_CHANNELS,
        sample_rate_hz: float = config.SAMPLE_RATE_HZ,
    ) -> None:
        self._channels = channels
        self._period = 1.0 / sample_rate_hz
        self._task: Optional[asyncio.Task[None]] = None

    async def scan(
        self,
        service_uuid: str,
        on_device_found: DeviceFoundCallback,
        timeout: float = 0.0,
    ) -> List[BleDeviceInfo]:
        device = BleDeviceInfo(name="EEG Simulator", address=SIM_ADDRESS, rssi=None)
        on_device_found(device)
        return [device]

    async def connect(
        self,
        address: str,
        on_disconnect: Optional[Callable[[], None]] = None,
        service_uuid: Optional[str] = None,
    ) -> str:
        if address != SIM_ADDRESS:
            raise ConnectError(f"Unknown simulated device {address}")
        return address

    async def subscribe(
        self,
        handle: str,
        service_uuid: str,
        char_uuid: str,
        on_notification: NotificationCallback,
    ) -> None:
        await self._stop()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(on_notification))

    async def disconnect(self, handle: str) -> None:
        await self._stop()

    async def _stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self, on_notification: NotificationCallback) -> None:
        logger.info("Simulator streaming %d channels", self._channels)
        generator = eeg_waveform_generator(channels=self._channels)
        while True:
            on_notification(encode_frame(next(generator)))
            await asyncio.sleep(self._period)
