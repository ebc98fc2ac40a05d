"""
EEG Monitor package for streaming Niura-style 4-channel EEG headbands.

The package exposes the pieces used by the GUI client to scan for Bluetooth
devices, run a streaming session, decode incoming frames and keep a bounded
history of every channel for live plotting.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
