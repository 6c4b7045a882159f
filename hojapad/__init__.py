"""Gamepad input processing and Switch Pro Controller report emulation."""

__version__ = "0.1.0"

__all__ = [
    "analog",
    "imu",
    "macros",
    "remap",
    "snapback",
    "stick_scaling",
    "switch_analog",
    "switch_commands",
    "switch_haptics",
    "switch_spi",
    "triggers",
]