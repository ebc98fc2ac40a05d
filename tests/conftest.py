import asyncio
import struct

import pytest

from eeg_monitor.ble import BleDeviceInfo


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Records every call the session makes and lets tests push frames."""

    def __init__(self, devices=(), connect_error=None, scan_error=None, scan_forever=False):
        self.devices = list(devices)
        self.connect_error = connect_error
        self.scan_error = scan_error
        self.scan_forever = scan_forever
        self.scan_calls = 0
        self.connected = []
        self.disconnected = []
        self.on_disconnect = None
        self.notify = None

    async def scan(self, service_uuid, on_device_found, timeout):
        self.scan_calls += 1
        if self.scan_error is not None:
            raise self.scan_error
        for device in self.devices:
            on_device_found(device)
        if self.scan_forever:
            await asyncio.Event().wait()
        return self.devices

    async def connect(self, address, on_disconnect=None, service_uuid=None):
        if self.connect_error is not None:
            raise self.connect_error
        self.on_disconnect = on_disconnect
        handle = f"handle-{address}"
        self.connected.append(handle)
        return handle

    async def subscribe(self, handle, service_uuid, char_uuid, on_notification):
        self.notify = on_notification

    async def disconnect(self, handle):
        self.disconnected.append(handle)


def make_frame(sequence, *channels):
    return struct.pack(f"<H{len(channels)}f", sequence, *channels)


async def settle(rounds: int = 5) -> None:
    """Let queued callbacks and the drain task run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def headband():
    return BleDeviceInfo(name="Niura EEG", address="AA:BB:CC:DD:EE:FF", rssi=-58)
