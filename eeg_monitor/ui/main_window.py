"""Qt main window for the EEG monitor application."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import pyqtgraph as pg
from PyQt6 import QtCore, QtWidgets
from qasync import asyncSlot

pg.setConfigOptions(antialias=False, useOpenGL=False)

from .. import config
from ..ble import BleDeviceInfo, ConnectError
from ..session import (
    READY_STATES,
    STREAMING_STATES,
    SessionSnapshot,
    SessionState,
    StreamSession,
    TransportDisconnect,
)

CHANNEL_COLORS = ["#5568F6", "#FF9500", "#4CD964", "#FF3B30"]
CHANNEL_OFFSET_UV = 150.0


class SessionBridge(QtCore.QObject):
    """Bridge session callbacks to Qt signals."""

    state_changed = QtCore.pyqtSignal(object)
    status_changed = QtCore.pyqtSignal(str)
    error_raised = QtCore.pyqtSignal(object)
    device_found = QtCore.pyqtSignal(object)

    def emit_state(self, state: SessionState) -> None:
        self.state_changed.emit(state)

    def emit_status(self, message: str) -> None:
        self.status_changed.emit(message)

    def emit_error(self, exc: Exception) -> None:
        self.error_raised.emit(exc)

    def emit_device(self, device: BleDeviceInfo) -> None:
        self.device_found.emit(device)


@dataclass
class DeviceEntry:
    label: str
    address: str


class MainWindow(QtWidgets.QMainWindow):
    """Top-level application window."""

    def __init__(
        self,
        transport: Any,
        capacity: int = config.HISTORY_CAPACITY,
    ) -> None:
        super().__init__()
        self.setWindowTitle("EEG BLE Monitor")
        self._bridge = SessionBridge()
        self._bridge.state_changed.connect(self._handle_state_change)
        self._bridge.status_changed.connect(self._handle_status_update)
        self._bridge.error_raised.connect(self._handle_error)
        self._bridge.device_found.connect(self._handle_device_found)

        self._session = StreamSession(
            transport,
            capacity=capacity,
            on_state=self._bridge.emit_state,
            on_status=self._bridge.emit_status,
            on_error=self._bridge.emit_error,
            on_device_found=self._bridge.emit_device,
        )
        self._device_items: Dict[int, DeviceEntry] = {}
        self._close_task: Optional[asyncio.Future[None]] = None

        self._build_ui()
        self._set_controls_enabled()

        self._plot_timer = QtCore.QTimer(self)
        self._plot_timer.setInterval(config.PLOT_REFRESH_MS)
        self._plot_timer.timeout.connect(self._refresh)
        self._plot_timer.start()

        self._log("Ready.")

    # ------------------------------------------------------------------ UI --
    def _build_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(central)

        controls_layout = QtWidgets.QHBoxLayout()

        self._scan_button = QtWidgets.QPushButton("Scan")
        self._scan_button.clicked.connect(self._on_scan_clicked)
        controls_layout.addWidget(self._scan_button)

        self._device_combo = QtWidgets.QComboBox()
        self._device_combo.setMinimumWidth(300)
        controls_layout.addWidget(self._device_combo, stretch=1)

        self._connect_button = QtWidgets.QPushButton("Connect")
        self._connect_button.clicked.connect(self._on_connect_clicked)
        controls_layout.addWidget(self._connect_button)

        self._pause_button = QtWidgets.QPushButton("Pause")
        self._pause_button.clicked.connect(self._on_pause_clicked)
        controls_layout.addWidget(self._pause_button)

        self._clear_button = QtWidgets.QPushButton("Clear")
        self._clear_button.clicked.connect(self._on_clear_clicked)
        controls_layout.addWidget(self._clear_button)

        self._disconnect_button = QtWidgets.QPushButton("Disconnect")
        self._disconnect_button.clicked.connect(self._on_disconnect_clicked)
        controls_layout.addWidget(self._disconnect_button)

        layout.addLayout(controls_layout)

        readout_group = QtWidgets.QGroupBox("Latest sample")
        readout_layout = QtWidgets.QHBoxLayout()
        self._sequence_label = QtWidgets.QLabel("Seq: 0")
        self._sequence_label.setStyleSheet("font-size: 18px; font-weight: 600;")
        readout_layout.addWidget(self._sequence_label)
        readout_layout.addSpacing(20)

        self._channel_labels = []
        for idx in range(self._session.channels):
            label = QtWidgets.QLabel(f"Ch{idx + 1}: 0.00 µV")
            color = CHANNEL_COLORS[idx % len(CHANNEL_COLORS)]
            label.setStyleSheet(f"font-size: 16px; color: {color};")
            self._channel_labels.append(label)
            readout_layout.addWidget(label)
        readout_layout.addStretch()
        readout_group.setLayout(readout_layout)
        layout.addWidget(readout_group)

        self._status_label = QtWidgets.QLabel("Status: Idle")
        layout.addWidget(self._status_label)

        self._plot_widget = pg.PlotWidget()
        self._plot_widget.setBackground("#F4F6FC")
        self._plot_widget.showGrid(x=False, y=True, alpha=0.2)
        self._plot_widget.setLabel("left", "EEG (µV)")
        self._plot_widget.setLabel("bottom", "Samples")
        self._plot_widget.setMinimumHeight(300)
        layout.addWidget(self._plot_widget, stretch=2)

        self._curves = [
            self._plot_widget.plot(
                pen=pg.mkPen(color=CHANNEL_COLORS[idx % len(CHANNEL_COLORS)], width=2),
                skipFiniteCheck=True,
            )
            for idx in range(self._session.channels)
        ]

        self._waiting_label = QtWidgets.QLabel("Waiting for data…")
        self._waiting_label.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
        self._waiting_label.setStyleSheet("color: #666;")
        layout.addWidget(self._waiting_label)

        self._speed_label = QtWidgets.QLabel("Speed: 0.0 samples/sec")
        self._speed_label.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
        self._speed_label.setStyleSheet("font-size: 16px; font-weight: 500;")
        layout.addWidget(self._speed_label)

        self._log_view = QtWidgets.QPlainTextEdit()
        self._log_view.setReadOnly(True)
        self._log_view.setMaximumHeight(120)
        layout.addWidget(self._log_view)

        central.setLayout(layout)
        self.setCentralWidget(central)
        self.resize(900, 700)

    # -------------------------------------------------------------- Helpers --
    def _current_device(self) -> DeviceEntry:
        idx = self._device_combo.currentIndex()
        entry = self._device_items.get(idx)
        if entry is None:
            raise ValueError("No device selected")
        return entry

    def _set_controls_enabled(self) -> None:
        state = self._session.state
        streaming = state in STREAMING_STATES
        self._scan_button.setEnabled(state in READY_STATES)
        self._connect_button.setEnabled(
            state in READY_STATES + (SessionState.SCANNING,) and bool(self._device_items)
        )
        self._device_combo.setEnabled(not streaming and state is not SessionState.CONNECTING)
        self._pause_button.setEnabled(streaming)
        self._pause_button.setText("Resume" if state is SessionState.PAUSED else "Pause")
        self._clear_button.setEnabled(streaming)
        self._disconnect_button.setEnabled(streaming or state is SessionState.CONNECTING)
        self._scan_button.setText("Scanning…" if state is SessionState.SCANNING else "Scan")

    def _log(self, message: str) -> None:
        self._log_view.appendPlainText(message)

    # ------------------------------------------------------------ Callbacks --
    def _handle_state_change(self, state: SessionState) -> None:
        self._status_label.setText(f"Status: {state.value.capitalize()}")
        if state is SessionState.DISCONNECTED:
            self._reset_plot()
        self._set_controls_enabled()

    def _handle_status_update(self, message: str) -> None:
        self._log(message)

    def _handle_error(self, exc: Exception) -> None:
        self._log(f"Error: {exc}")
        if isinstance(exc, ConnectError):
            QtWidgets.QMessageBox.warning(self, "Connection error", str(exc))
        elif isinstance(exc, TransportDisconnect):
            QtWidgets.QMessageBox.information(self, "Device disconnected", str(exc))

    def _handle_device_found(self, device: BleDeviceInfo) -> None:
        rssi_text = f"[{device.rssi}dBm]" if device.rssi is not None else "[?]"
        label = f"{device.name} {rssi_text} ({device.address})"
        index = self._device_combo.count()
        self._device_combo.addItem(label, userData=device.address)
        self._device_items[index] = DeviceEntry(label, device.address)
        self._set_controls_enabled()

    def _refresh(self) -> None:
        snapshot = self._session.snapshot()
        self._speed_label.setText(f"Speed: {snapshot.rate:.1f} samples/sec")
        if snapshot.state not in STREAMING_STATES:
            return
        self._render(snapshot)

    def _render(self, snapshot: SessionSnapshot) -> None:
        self._sequence_label.setText(f"Seq: {snapshot.latest_sequence}")
        for label, (idx, value) in zip(
            self._channel_labels, enumerate(snapshot.channels_uv)
        ):
            label.setText(f"Ch{idx + 1}: {value:.2f} µV")

        points = len(snapshot.histories[0]) if snapshot.histories else 0
        self._waiting_label.setVisible(points < 2)
        if points < 2:
            return
        x = np.arange(-points + 1, 1)
        for idx, (curve, history) in enumerate(zip(self._curves, snapshot.histories)):
            curve.setData(x, history + idx * CHANNEL_OFFSET_UV, skipFiniteCheck=True)

    def _reset_plot(self) -> None:
        for curve in self._curves:
            curve.setData([], [])
        self._waiting_label.setVisible(True)
        self._sequence_label.setText("Seq: 0")
        for idx, label in enumerate(self._channel_labels):
            label.setText(f"Ch{idx + 1}: 0.00 µV")

    # ---------------------------------------------------------- UI actions --
    @asyncSlot()
    async def _on_scan_clicked(self) -> None:
        self._log("Starting Bluetooth scan...")
        self._device_combo.clear()
        self._device_items = {}
        try:
            await self._session.request_scan()
        except Exception as exc:
            self._log(f"Scan failed: {exc}")
        finally:
            self._set_controls_enabled()

    @asyncSlot()
    async def _on_connect_clicked(self) -> None:
        try:
            entry = self._current_device()
        except ValueError as exc:
            self._log(str(exc))
            return
        self._reset_plot()
        if await self._session.select_device(entry.address):
            self._log(f"Connected to {entry.label}")

    def _on_pause_clicked(self) -> None:
        state = self._session.toggle_pause()
        self._log("Recording paused" if state is SessionState.PAUSED else "Recording resumed")

    def _on_clear_clicked(self) -> None:
        self._session.clear()
        self._reset_plot()
        self._log("History cleared")

    @asyncSlot()
    async def _on_disconnect_clicked(self) -> None:
        await self._session.disconnect()
        self._reset_plot()

    def closeEvent(self, event):
        self._plot_timer.stop()
        self._close_task = asyncio.ensure_future(self._session.close())
        super().closeEvent(event)
