"""Streaming session: binds a transport subscription to the sample pipeline."""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import numpy as np

from . import config, data_parser
from .aggregator import SampleAggregator
from .ble import BleDeviceInfo, ConnectError
from .throughput import ThroughputMeter

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    CONNECTING = "connecting"
    ACTIVE = "active"
    PAUSED = "paused"
    DISCONNECTED = "disconnected"


STREAMING_STATES = (SessionState.ACTIVE, SessionState.PAUSED)
# States from which a new scan or connection may start.
READY_STATES = (SessionState.IDLE, SessionState.DISCONNECTED)


class SessionError(Exception):
    """Base class for errors reported by a session."""


class TransportDisconnect(SessionError):
    """The link to the device dropped without being asked to."""


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session taken at one instant."""

    state: SessionState
    device_address: Optional[str]
    latest_sequence: int
    channels_uv: Tuple[float, ...]
    histories: List[np.ndarray]
    rate: float
    sample_count: int
    dropped_frames: int
    sequence_gaps: int


StateCallback = Callable[[SessionState], None]
StatusCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]
DeviceCallback = Callable[[BleDeviceInfo], None]


class StreamSession:
    """Drive one device from discovery to teardown.

    The transport pushes raw payloads into a bounded queue; a single consumer
    task drains it in arrival order, decodes each frame and applies it to the
    aggregator. Every mutation happens on the event loop, so readers using
    ``snapshot()`` or the accessors never see a half-applied sample.
    """

    def __init__(
        self,
        transport: Any,
        *,
        channels: int = config.EEG_CHANNELS,
        capacity: int = config.HISTORY_CAPACITY,
        scan_timeout: float = config.DEFAULT_SCAN_TIMEOUT,
        service_uuid: str = config.UART_SERVICE_UUID,
        char_uuid: str = config.UART_RX_CHAR_UUID,
        queue_size: int = config.FRAME_QUEUE_SIZE,
        clock: Callable[[], float] = time.monotonic,
        on_state: StateCallback = lambda state: None,
        on_status: StatusCallback = lambda msg: None,
        on_error: ErrorCallback = lambda exc: None,
        on_device_found: DeviceCallback = lambda device: None,
    ) -> None:
        self._transport = transport
        self.channels = channels
        self.scan_timeout = scan_timeout
        self.service_uuid = service_uuid
        self.char_uuid = char_uuid
        self.on_state = on_state
        self.on_status = on_status
        self.on_error = on_error
        self.on_device_found = on_device_found

        self.aggregator = SampleAggregator(channels=channels, capacity=capacity)
        self.meter = ThroughputMeter(clock=clock)
        self.devices: Dict[str, BleDeviceInfo] = {}

        self._state = SessionState.IDLE
        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue(maxsize=queue_size)
        self._scan_task: Optional[asyncio.Task[Any]] = None
        self._drain_task: Optional[asyncio.Task[None]] = None
        self._pending: Set[asyncio.Future[Any]] = set()
        self._handle: Any = None
        self._address: Optional[str] = None

    # ------------------------------------------------------------ Accessors --
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def device_address(self) -> Optional[str]:
        return self._address

    @property
    def paused(self) -> bool:
        return self._state is SessionState.PAUSED

    def latest_sequence(self) -> int:
        return self.aggregator.latest_sequence()

    def latest_channel_values(self) -> Tuple[float, ...]:
        return self.aggregator.latest_channel_values()

    def history_snapshot(self) -> List[np.ndarray]:
        return self.aggregator.history_snapshot()

    def rate(self) -> float:
        return self.meter.rate()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            device_address=self._address,
            latest_sequence=self.aggregator.latest_sequence(),
            channels_uv=self.aggregator.latest_channel_values(),
            histories=self.aggregator.history_snapshot(),
            rate=self.meter.rate(),
            sample_count=self.meter.sample_count,
            dropped_frames=self.meter.dropped_frames,
            sequence_gaps=self.aggregator.sequence_gaps,
        )

    # ------------------------------------------------------------- Commands --
    async def request_scan(self) -> List[BleDeviceInfo]:
        """Discover devices for at most ``scan_timeout`` seconds, then go idle."""
        if self._state not in READY_STATES:
            logger.debug("Scan ignored in state %s", self._state.name)
            return list(self.devices.values())

        self.devices = {}
        self._set_state(SessionState.SCANNING)
        self.on_status("Scanning for devices...")
        self._scan_task = asyncio.ensure_future(
            self._transport.scan(
                self.service_uuid, self._handle_device_found, self.scan_timeout
            )
        )
        try:
            await asyncio.wait_for(self._scan_task, timeout=self.scan_timeout)
        except asyncio.TimeoutError:
            logger.debug("Scan window of %.1fs elapsed", self.scan_timeout)
        except asyncio.CancelledError:
            # Cancelled by select_device() or disconnect(), which already left SCANNING.
            if self._state is SessionState.SCANNING:
                raise
            return list(self.devices.values())
        except Exception as exc:
            error = exc if isinstance(exc, ConnectError) else ConnectError(str(exc))
            logger.warning("Scan failed: %s", error)
            self.on_error(error)
        finally:
            self._scan_task = None
            if self._state is SessionState.SCANNING:
                self._set_state(SessionState.IDLE)

        self.on_status(f"Found {len(self.devices)} device(s)")
        return list(self.devices.values())

    async def select_device(self, address: str) -> bool:
        """Connect to ``address`` and start streaming; True on success."""
        if self._state is SessionState.SCANNING:
            self._cancel_scan()
        elif self._state not in READY_STATES:
            logger.debug("Connect ignored in state %s", self._state.name)
            return False

        self._address = address
        self._set_state(SessionState.CONNECTING)
        self.on_status(f"Connecting to {address}...")
        handle = None
        try:
            handle = await self._transport.connect(
                address,
                on_disconnect=self._handle_transport_disconnect,
                service_uuid=self.service_uuid,
            )
            if self._state is not SessionState.CONNECTING:
                # Torn down while the link was being established.
                await self._release(handle)
                return False
            await self._transport.subscribe(
                handle, self.service_uuid, self.char_uuid, self._handle_notification
            )
        except Exception as exc:
            error = exc if isinstance(exc, ConnectError) else ConnectError(str(exc))
            logger.warning("Connection to %s failed: %s", address, error)
            if self._state is SessionState.CONNECTING:
                self._address = None
                self._set_state(SessionState.DISCONNECTED)
                self.on_error(error)
            if handle is not None:
                await self._release(handle)
            return False

        if self._state is not SessionState.CONNECTING:
            await self._release(handle)
            return False

        self._handle = handle
        self._begin_stream()
        self.on_status("Connected")
        return True

    def toggle_pause(self) -> SessionState:
        """Switch between recording and live-only readouts."""
        if self._state is SessionState.ACTIVE:
            self._set_state(SessionState.PAUSED)
        elif self._state is SessionState.PAUSED:
            self._set_state(SessionState.ACTIVE)
        else:
            logger.debug("Pause ignored in state %s", self._state.name)
        return self._state

    def clear(self) -> None:
        """Empty the histories and restart the throughput window."""
        self.aggregator.reset()
        if self._state in STREAMING_STATES:
            self.meter.reset()
        else:
            self.meter.stop()

    async def disconnect(self) -> None:
        """Tear the session down and release the transport."""
        self._cancel_scan()
        handle = self._teardown()
        if handle is not None:
            self.on_status("Disconnecting...")
            await self._release(handle)
        self.on_status("Disconnected")

    async def close(self) -> None:
        """Disconnect and return to idle, ready for a new device."""
        await self.disconnect()
        self._set_state(SessionState.IDLE)

    # ------------------------------------------------------------- Pipeline --
    def process_frame(self, payload: Optional[bytes]) -> Optional[data_parser.Sample]:
        """Decode one payload and apply it; returns the sample or None if dropped."""
        if self._state not in STREAMING_STATES:
            logger.debug("Dropping frame received in state %s", self._state.name)
            return None
        try:
            sample = data_parser.decode_frame(payload, channels=self.channels)
        except data_parser.DecodeError:
            logger.debug("Failed to decode frame", exc_info=True)
            self.meter.count_dropped()
            return None
        self.aggregator.apply_sample(
            sample, record_history=self._state is SessionState.ACTIVE
        )
        self.meter.count()
        return sample

    def _handle_notification(self, payload: Optional[bytes]) -> None:
        if self._state not in STREAMING_STATES:
            return
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Frame queue full, dropping frame")
            self.meter.count_dropped()

    async def _drain(self) -> None:
        while True:
            payload = await self._queue.get()
            self.process_frame(payload)

    def _handle_device_found(self, device: BleDeviceInfo) -> None:
        if self._state is not SessionState.SCANNING or device.address in self.devices:
            return
        self.devices[device.address] = device
        self.on_device_found(device)

    def _handle_transport_disconnect(self) -> None:
        address = self._address
        if self._state is SessionState.CONNECTING:
            # select_device() sees the state change and releases the handle.
            logger.warning("Device %s dropped while connecting", address)
            self._address = None
            self._set_state(SessionState.DISCONNECTED)
            self.on_error(ConnectError(f"Lost connection to {address} while connecting"))
            return
        if self._state not in STREAMING_STATES:
            return
        logger.warning("Device %s disconnected unexpectedly", address)
        handle = self._teardown()
        if handle is not None:
            self._spawn(self._release(handle))
        self.on_status("Device disconnected")
        self.on_error(TransportDisconnect(f"Lost connection to {address}"))

    # -------------------------------------------------------------- Helpers --
    def _begin_stream(self) -> None:
        self._flush_queue()
        self.aggregator.reset()
        self.meter.start()
        self._drain_task = asyncio.ensure_future(self._drain())
        self._set_state(SessionState.ACTIVE)

    def _teardown(self) -> Any:
        """Drop all derived state in one step; returns the handle to release."""
        if self._drain_task is not None:
            self._drain_task.cancel()
            self._drain_task = None
        self._flush_queue()
        self.aggregator.reset()
        self.meter.stop()
        handle, self._handle = self._handle, None
        self._address = None
        self._set_state(SessionState.DISCONNECTED)
        return handle

    def _spawn(self, coro: Any) -> asyncio.Future[Any]:
        """Schedule ``coro`` and hold a reference until it finishes."""
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _release(self, handle: Any) -> None:
        try:
            await self._transport.disconnect(handle)
        except Exception as exc:  # noqa: transport cleanup must not block teardown
            logger.warning("Error while disconnecting: %s", exc)

    def _cancel_scan(self) -> None:
        if self._scan_task is not None and not self._scan_task.done():
            self._scan_task.cancel()

    def _flush_queue(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.info("Session %s -> %s", self._state.name, state.name)
        self._state = state
        self.on_state(state)
