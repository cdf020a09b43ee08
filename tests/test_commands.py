"""Tests for command builders."""

from unittest.mock import MagicMock

import pytest

from conftest import FixedRandomSource

from sr900_mcp.models.profile import RoastProfile
from sr900_mcp.models.settings import RoasterSettings, VoltageSupply
from sr900_mcp.protocol.commands import CommandBuilder, MessageType
from sr900_mcp.protocol.framing import FRAME_SIZE, SEED_HEADER, FrameEncoder

MAC = bytes([0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF])


def _builder(connected: bool = True) -> tuple[CommandBuilder, MagicMock]:
    transport = MagicMock()
    transport.is_connected.return_value = connected
    encoder = FrameEncoder(
        transport, device_address=MAC, random_source=FixedRandomSource(0x07)
    )
    return CommandBuilder(encoder), transport


def test_message_type_values():
    """Verify message type IDs used by the roaster."""
    assert MessageType.HEAT_CONTROL == 0x01
    assert MessageType.FAN_CONTROL == 0x02
    assert MessageType.START_MANUAL_ROAST == 0x15
    assert MessageType.START_PROFILE_ROAST == 0x1A
    assert MessageType.SEND_PROFILE == 0x1B
    assert MessageType.REQUEST_MAC == 0x26
    assert MessageType.UPDATE_SETTINGS == 0x2B


def test_request_mac_has_no_address():
    """The MAC request pads straight after the type bytes."""
    commands, transport = _builder()
    frame = commands.request_mac()
    assert frame.data[:5] == b"\x20" + SEED_HEADER
    assert frame.data[5:7] == b"\x00\x26"
    assert frame.data[7:31] == b"\x07" * 24
    assert frame.data[31] == sum(frame.data[1:31]) % 256
    transport.send.assert_called_once_with(frame.data)


def test_fan_control():
    """Fan control embeds type, address and level."""
    commands, _ = _builder()
    frame = commands.fan_control(5)
    assert len(frame.data) == FRAME_SIZE
    assert frame.data[5:7] == b"\x00\x02"
    assert frame.data[7:13] == MAC
    assert frame.data[13] == 5
    assert frame.data[14] == 0x07


def test_fan_control_bounds():
    commands, transport = _builder()
    with pytest.raises(ValueError):
        commands.fan_control(10)
    with pytest.raises(ValueError):
        commands.fan_control(-1)
    transport.send.assert_not_called()


def test_heat_control():
    commands, _ = _builder()
    frame = commands.heat_control(9)
    assert frame.data[6] == MessageType.HEAT_CONTROL
    assert frame.data[13] == 9


def test_start_manual_roast_payload_order():
    """Payload is roast, cool, heat, fan, then a zero byte."""
    commands, _ = _builder()
    frame = commands.start_manual_roast(fan=6, heat=4, roast_minutes=12, cool_minutes=3)
    assert frame.data[6] == MessageType.START_MANUAL_ROAST
    assert frame.data[13:18] == bytes([12, 3, 4, 6, 0])


@pytest.mark.parametrize(
    "fan, heat, roast, cool",
    [(10, 1, 1, 0), (1, 10, 1, 0), (1, 1, 16, 0), (1, 1, 1, 5)],
)
def test_start_manual_roast_bounds(fan, heat, roast, cool):
    commands, _ = _builder()
    with pytest.raises(ValueError):
        commands.start_manual_roast(fan, heat, roast, cool)


def test_start_profile_roast():
    commands, _ = _builder()
    frame = commands.start_profile_roast()
    assert frame.data[5:7] == b"\x00\x1A"
    assert frame.data[7:13] == MAC


def test_send_profile_fills_payload():
    """Eighteen packed profile bytes land at offsets 13..30."""
    commands, _ = _builder()
    profile = RoastProfile()
    frame = commands.send_profile(profile)
    assert frame.data[6] == MessageType.SEND_PROFILE
    assert frame.data[13:31] == profile.to_bytes()
    assert frame.data[13] == 0x92


def test_update_settings_subtype():
    """Settings travel in the subtype byte."""
    commands, _ = _builder()
    settings = RoasterSettings(
        fahrenheit=True, external_thermistor=True, voltage=VoltageSupply.HIGH
    )
    frame = commands.update_settings(settings)
    assert frame.data[5] == 0x80 | 0x40 | 0x04
    assert frame.data[6] == MessageType.UPDATE_SETTINGS


def test_first_command_seeds_then_rotates():
    """Only the first command of a session carries the seed header."""
    commands, _ = _builder()
    first = commands.request_mac()
    second = commands.fan_control(3)
    assert first.header == SEED_HEADER
    assert second.header == b"\x07\x07\x07\x07"


def test_commands_when_disconnected():
    """Commands still build full frames but nothing is sent."""
    commands, transport = _builder(connected=False)
    frame = commands.heat_control(2)
    assert not frame.sent
    assert frame.data[32:] == b"\x30\x03"
    transport.send.assert_not_called()
