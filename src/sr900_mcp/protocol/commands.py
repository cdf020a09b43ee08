"""Message type constants and high-level command builders.

Every command frame is laid out as::

    [0x20][header x4][subtype][type][address x6][payload ...][pad][chk][0x30][0x03]

The MAC request is the one exception: it is sent before the roaster has
reported its address, so it carries no address.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from ..models.profile import RoastProfile
from ..models.settings import RoasterSettings
from .framing import Frame, FrameEncoder

logger = logging.getLogger(__name__)

MAX_LEVEL = 9
MAX_ROAST_MINUTES = 15
MAX_COOL_MINUTES = 4


class MessageType(IntEnum):
    """Outgoing message type identifiers."""

    HEAT_CONTROL = 0x01
    FAN_CONTROL = 0x02
    START_MANUAL_ROAST = 0x15
    START_PROFILE_ROAST = 0x1A
    SEND_PROFILE = 0x1B
    REQUEST_MAC = 0x26
    UPDATE_SETTINGS = 0x2B


def _check_range(name: str, value: int, high: int) -> None:
    if not 0 <= value <= high:
        raise ValueError(f"{name} must be 0-{high}, got {value}")


class CommandBuilder:
    """Runs one complete encoder cycle per command.

    Usage::

        commands = CommandBuilder(encoder)
        commands.request_mac()
        encoder.device_address = mac
        frame = commands.fan_control(5)
    """

    def __init__(self, encoder: FrameEncoder) -> None:
        self.encoder = encoder

    def build(
        self,
        message_type: MessageType,
        payload: bytes = b"",
        subtype: int = 0x00,
        with_address: bool = True,
    ) -> Frame:
        """Build and finalize a frame for ``message_type``."""
        self.encoder.begin_frame()
        self.encoder.append_message_type(message_type.value, subtype)
        if with_address:
            self.encoder.append_device_address()
        if payload:
            self.encoder.append_payload(payload)
        frame = self.encoder.finalize_frame()
        logger.debug("Built %s frame (sent=%s)", message_type.name, frame.sent)
        return frame

    def request_mac(self) -> Frame:
        """Build a MAC request (0x26), the first message of a session."""
        return self.build(MessageType.REQUEST_MAC, with_address=False)

    def fan_control(self, level: int) -> Frame:
        """Build a Fan Control command.

        Args:
            level: Fan level 0-9.
        """
        _check_range("Fan level", level, MAX_LEVEL)
        return self.build(MessageType.FAN_CONTROL, bytes([level]))

    def heat_control(self, level: int) -> Frame:
        """Build a Heat Control command.

        Args:
            level: Heat level 0-9.
        """
        _check_range("Heat level", level, MAX_LEVEL)
        return self.build(MessageType.HEAT_CONTROL, bytes([level]))

    def start_manual_roast(
        self,
        fan: int,
        heat: int,
        roast_minutes: int,
        cool_minutes: int,
    ) -> Frame:
        """Build a Start Manual Roast command.

        Payload order is roast time, cool time, heat, fan, then a zero
        byte reserved for auto-stop.

        Args:
            fan: Fan level 0-9.
            heat: Heat level 0-9.
            roast_minutes: Roast time 0-15 minutes.
            cool_minutes: Cool time 0-4 minutes.
        """
        _check_range("Fan level", fan, MAX_LEVEL)
        _check_range("Heat level", heat, MAX_LEVEL)
        _check_range("Roast time", roast_minutes, MAX_ROAST_MINUTES)
        _check_range("Cool time", cool_minutes, MAX_COOL_MINUTES)
        payload = bytes([roast_minutes, cool_minutes, heat, fan, 0x00])
        return self.build(MessageType.START_MANUAL_ROAST, payload)

    def start_profile_roast(self) -> Frame:
        """Build a Start Profile Roast command for the stored profile."""
        return self.build(MessageType.START_PROFILE_ROAST)

    def send_profile(self, profile: RoastProfile) -> Frame:
        """Build a Send Profile command carrying all 18 profile steps."""
        return self.build(MessageType.SEND_PROFILE, profile.to_bytes())

    def update_settings(self, settings: RoasterSettings) -> Frame:
        """Build an Update Settings command; the settings ride in the subtype."""
        return self.build(
            MessageType.UPDATE_SETTINGS, subtype=settings.to_subtype()
        )
