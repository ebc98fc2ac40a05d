"""Entry point for the EEG BLE monitor application."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import platform
import sys

from PyQt6 import QtWidgets
import qasync

from eeg_monitor import config
from eeg_monitor.ble import BleController
from eeg_monitor.logging_setup import setup_logging
from eeg_monitor.sim_device import SimulatedTransport
from eeg_monitor.ui.main_window import MainWindow

logger = logging.getLogger(__name__)


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="eeg-monitor", description="Live monitor for 4-channel EEG BLE headbands"
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Stream synthetic frames instead of using Bluetooth",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=config.HISTORY_CAPACITY,
        help=f"Samples kept per channel (default: {config.HISTORY_CAPACITY})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    ns = parser.parse_args(argv)
    if ns.capacity < 1:
        parser.error("--capacity must be positive")
    return ns


def run(argv=None) -> None:
    """Launch the Qt application."""
    ns = _parse_args(argv)
    setup_logging(getattr(logging, ns.log_level))

    if platform.system() == "Darwin":
        os.environ.setdefault("QT_MAC_WANTS_LAYER", "1")

    transport = SimulatedTransport() if ns.simulate else BleController()
    logger.info("Using %s transport", type(transport).__name__)

    app = QtWidgets.QApplication(sys.argv[:1])
    loop = qasync.QEventLoop(app)
    asyncio.set_event_loop(loop)
    window = MainWindow(transport, capacity=ns.capacity)
    window.show()
    with loop:
        try:
            loop.run_forever()
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    run()
