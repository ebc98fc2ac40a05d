"""Bluetooth Low Energy helpers built on top of bleak."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

logger = logging.getLogger(__name__)


@dataclass
class BleDeviceInfo:
    """Snapshot of a BLE device discovered during a scan."""

    name: str
    address: str
    rssi: Optional[int]


class ConnectError(Exception):
    """Discovery or connection to a device failed."""


DeviceFoundCallback = Callable[[BleDeviceInfo], None]
NotificationCallback = Callable[[Optional[bytes]], None]


class BleController:
    """Wraps BLE scanning, connection and notification lifecycle.

    Handles returned by ``connect`` are the underlying ``BleakClient``.
    """

    async def scan(
        self,
        service_uuid: str,
        on_device_found: DeviceFoundCallback,
        timeout: float = 5.0,
    ) -> List[BleDeviceInfo]:
        """Scan for named devices advertising ``service_uuid``.

        Each address is reported once, the first time it is seen."""
        found: Dict[str, BleDeviceInfo] = {}

        def _detected(device: BLEDevice, adv: AdvertisementData) -> None:
            name = device.name or adv.local_name
            if not name or device.address in found:
                return
            info = BleDeviceInfo(name=name, address=device.address, rssi=adv.rssi)
            found[device.address] = info
            on_device_found(info)

        try:
            async with BleakScanner(
                detection_callback=_detected, service_uuids=[service_uuid]
            ):
                await asyncio.sleep(timeout)
        except BleakError as exc:
            raise ConnectError(f"Scan failed: {exc}") from exc
        return list(found.values())

    async def connect(
        self,
        address: str,
        on_disconnect: Optional[Callable[[], None]] = None,
        service_uuid: Optional[str] = None,
    ) -> BleakClient:
        """Connect to a device and check it exposes ``service_uuid``."""

        def _disconnected(_: BleakClient) -> None:
            if on_disconnect:
                on_disconnect()

        client = BleakClient(address, disconnected_callback=_disconnected)
        try:
            await client.connect()
        except (BleakError, asyncio.TimeoutError, OSError) as exc:
            raise ConnectError(f"Could not connect to {address}: {exc}") from exc

        if service_uuid and client.services.get_service(service_uuid) is None:
            await self.disconnect(client)
            raise ConnectError(f"{address} does not expose service {service_uuid}")
        return client

    async def subscribe(
        self,
        handle: BleakClient,
        service_uuid: str,
        char_uuid: str,
        on_notification: NotificationCallback,
    ) -> None:
        """Forward every notification payload of ``char_uuid`` as bytes."""
        service = handle.services.get_service(service_uuid)
        characteristic = service.get_characteristic(char_uuid) if service else None
        if characteristic is None:
            raise ConnectError(f"Characteristic {char_uuid} not found")

        def _notified(_: object, data: bytearray) -> None:
            on_notification(bytes(data) if data is not None else None)

        try:
            await handle.start_notify(characteristic, _notified)
        except BleakError as exc:
            raise ConnectError(f"Subscription failed: {exc}") from exc

    async def disconnect(self, handle: BleakClient) -> None:
        """Disconnect ``handle`` if it is still connected."""
        if not handle.is_connected:
            return
        try:
            await handle.disconnect()
        except BleakError:
            logger.debug("disconnect failed", exc_info=True)
