"""MCP server entry point for the SR900 coffee roaster.

Exposes roaster commands as tools and the frame layout as resources via the
Model Context Protocol, using the official Python MCP SDK with stdio
transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.profile import RoastProfile
from .models.settings import RoasterSettings, VoltageSupply
from .protocol.commands import CommandBuilder, MessageType
from .protocol.framing import (
    ADDRESS_OFFSET,
    CHECKSUM_OFFSET,
    FOOTER_BYTE,
    FRAME_SIZE,
    Frame,
    FrameEncoder,
    PAYLOAD_OFFSET,
    SEED_HEADER,
    START_BYTE,
    TERMINATOR_BYTE,
    parse_device_address,
)
from .transport.ble_connection import BLEConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "sr900-roaster",
    instructions="MCP server for the SR900 Bluetooth coffee roaster",
)

# Global session state
_connection: BLEConnection | None = None
_encoder: FrameEncoder | None = None
_commands: CommandBuilder | None = None


def _get_commands() -> CommandBuilder:
    """Get the command builder for the active session, raising if none."""
    if _commands is None or _connection is None or not _connection.connected:
        raise RuntimeError(
            "Not connected to roaster. Use the 'connect' tool first."
        )
    return _commands


def _frame_result(frame: Frame, **extra: Any) -> dict[str, Any]:
    result: dict[str, Any] = {"sent": frame.sent, "frame": frame.hex()}
    result.update(extra)
    if not frame.sent:
        result["warning"] = "Roaster not connected; frame was built but not sent"
    return result


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(address: str, device_address: str | None = None) -> dict[str, Any]:
    """Connect to an SR900 roaster over Bluetooth LE.

    Starts a new session: the first frame uses the seed header and is a
    MAC request (0x26), which the roaster answers with its MAC address.

    Args:
        address: BLE address (or platform UUID on macOS) of the roaster.
        device_address: Optional roaster MAC to embed in command frames,
                        e.g. "AA:BB:CC:DD:EE:FF".
    """
    global _connection, _encoder, _commands
    if _connection is not None and _connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "address": _connection.device_info.address,
        }

    mac = b"\x00" * 6
    if device_address:
        try:
            mac = parse_device_address(device_address)
        except ValueError as e:
            return {"error": str(e)}

    if _connection is not None:
        # Link dropped since the last connect; release its loop and client.
        _connection.close()

    _connection = BLEConnection()
    info = _connection.open(address)

    _encoder = FrameEncoder(_connection, device_address=mac)
    _commands = CommandBuilder(_encoder)
    frame = _commands.request_mac()

    return {
        "connected": True,
        "address": info.address,
        "write_characteristic": info.write_characteristic,
        "mac_request": frame.hex(),
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the Bluetooth connection to the roaster."""
    global _connection, _encoder, _commands
    if _connection is None:
        return {"disconnected": True}
    _connection.close()
    _connection = None
    _encoder = None
    _commands = None
    return {"disconnected": True}


@mcp.tool()
def set_device_address(mac: str) -> dict[str, Any]:
    """Set the roaster MAC address embedded in every command frame.

    Args:
        mac: Six bytes as hex, e.g. "AA:BB:CC:DD:EE:FF".
    """
    try:
        address = parse_device_address(mac)
    except ValueError as e:
        return {"error": str(e)}

    commands = _get_commands()
    commands.encoder.device_address = address
    return {"device_address": address.hex(":").upper()}


@mcp.tool()
def request_mac() -> dict[str, Any]:
    """Ask the roaster to report its MAC address (message 0x26)."""
    return _frame_result(_get_commands().request_mac())


# ─── ROAST CONTROL TOOLS ─────────────────────────────────────────────

@mcp.tool()
def set_fan(level: int) -> dict[str, Any]:
    """Set the fan level during a roast or cool-down.

    Args:
        level: Fan level (0-9).
    """
    if not 0 <= level <= 9:
        return {"error": "Fan level must be 0-9"}
    return _frame_result(_get_commands().fan_control(level), fan=level)


@mcp.tool()
def set_heat(level: int) -> dict[str, Any]:
    """Set the heater level during a roast.

    Args:
        level: Heat level (0-9).
    """
    if not 0 <= level <= 9:
        return {"error": "Heat level must be 0-9"}
    return _frame_result(_get_commands().heat_control(level), heat=level)


@mcp.tool()
def start_manual_roast(
    fan: int,
    heat: int,
    roast_minutes: int,
    cool_minutes: int = 0,
) -> dict[str, Any]:
    """Start a manual roast.

    Args:
        fan: Fan level (1-9).
        heat: Heat level (1-9).
        roast_minutes: Roast time in minutes (1-15).
        cool_minutes: Cool time in minutes (0-4).
    """
    if fan < 1 or heat < 1 or roast_minutes < 1:
        return {"error": "Fan, heat and roast time must all be greater than 0"}
    try:
        frame = _get_commands().start_manual_roast(
            fan, heat, roast_minutes, cool_minutes
        )
    except ValueError as e:
        return {"error": str(e)}
    return _frame_result(
        frame,
        fan=fan,
        heat=heat,
        roast_minutes=roast_minutes,
        cool_minutes=cool_minutes,
    )


@mcp.tool()
def send_profile(
    fan: list[int] | None = None,
    heat: list[int] | None = None,
) -> dict[str, Any]:
    """Upload an 18-step roast profile (message 0x1B).

    Args:
        fan: 18 fan levels (0-9, 0 = unused step). Defaults to the stock profile.
        heat: 18 heat levels (0-9, 0 = unused step). Defaults to the stock profile.
    """
    try:
        profile = RoastProfile(
            fan=fan if fan is not None else RoastProfile().fan,
            heat=heat if heat is not None else RoastProfile().heat,
        )
    except ValueError as e:
        return {"error": str(e)}
    frame = _get_commands().send_profile(profile)
    return _frame_result(frame, profile=profile.to_dict())


@mcp.tool()
def start_profile_roast() -> dict[str, Any]:
    """Start a roast using the profile stored on the roaster (message 0x1A).

    Do not send a manual roast command while a profile roast is running.
    """
    return _frame_result(_get_commands().start_profile_roast())


@mcp.tool()
def update_settings(
    fahrenheit: bool = True,
    external_thermistor: bool = False,
    voltage: str = "AVERAGE",
) -> dict[str, Any]:
    """Change roaster settings (message 0x2B).

    Args:
        fahrenheit: True for Fahrenheit, False for Celsius.
        external_thermistor: True to read the external thermistor.
        voltage: Mains supply level: LOW, AVERAGE or HIGH.
    """
    try:
        supply = VoltageSupply.from_name(voltage)
    except ValueError as e:
        return {"error": str(e)}
    settings = RoasterSettings(
        fahrenheit=fahrenheit,
        external_thermistor=external_thermistor,
        voltage=supply,
    )
    frame = _get_commands().update_settings(settings)
    return _frame_result(frame, settings=settings.to_dict())


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("sr900://device/status")
def resource_device_status() -> str:
    """Connection state and session header state."""
    connected = _connection is not None and _connection.connected
    status: dict[str, Any] = {"connected": connected}
    if _encoder is not None:
        status.update({
            "device_address": _encoder.device_address.hex(":").upper(),
            "header": _encoder.header.hex(" ").upper(),
            "seed_header": _encoder.is_first_frame,
        })
    return json.dumps(status)


@mcp.resource("sr900://protocol/frame-layout")
def resource_frame_layout() -> str:
    """Byte layout of outgoing frames and the known message types."""
    return json.dumps({
        "frame_size": FRAME_SIZE,
        "start_byte": f"0x{START_BYTE:02X}",
        "seed_header": SEED_HEADER.hex(" ").upper(),
        "address_offset": ADDRESS_OFFSET,
        "payload_offset": PAYLOAD_OFFSET,
        "checksum_offset": CHECKSUM_OFFSET,
        "checksum": "sum of bytes 1-30 modulo 256",
        "footer": [f"0x{FOOTER_BYTE:02X}", f"0x{TERMINATOR_BYTE:02X}"],
        "message_types": {m.name: f"0x{m.value:02X}" for m in MessageType},
    })


@mcp.resource("sr900://profile/default")
def resource_default_profile() -> str:
    """The stock 18-step roast profile."""
    return json.dumps(RoastProfile().to_dict())


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
