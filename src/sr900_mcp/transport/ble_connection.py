"""Bluetooth Low Energy connection to the SR900 roaster.

Uses ``bleak`` on a private asyncio event loop running in a daemon thread,
so callers stay synchronous. Frames are written without response to the
roaster's DF02 characteristic; the encoder never waits for delivery.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass

from bleak import BleakClient
from bleak.backends.characteristic import BleakGATTCharacteristic

from ..protocol.framing import FRAME_SIZE

logger = logging.getLogger(__name__)

DEVICE_NAME_PREFIX = "SR900"
WRITE_CHAR_PREFIX = "df00df02"
CONNECT_TIMEOUT_S = 15.0
STOP_TIMEOUT_S = 1.0


@dataclass
class DeviceInfo:
    """What we know about the connected roaster."""

    address: str = ""
    write_characteristic: str = ""


class BLEConnection:
    """Manages the BLE link to the roaster and implements ``Transport``.

    Usage::

        conn = BLEConnection()
        conn.open("AA:BB:CC:DD:EE:FF")
        conn.send(frame_bytes)
        conn.close()
    """

    def __init__(self, connect_timeout: float = CONNECT_TIMEOUT_S) -> None:
        self._connect_timeout = connect_timeout
        self._client: BleakClient | None = None
        self._char: BleakGATTCharacteristic | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._connected = False
        self._device_info = DeviceInfo()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def is_connected(self) -> bool:
        return self._connected

    def open(self, address: str) -> DeviceInfo:
        """Connect to the roaster at ``address`` and find its write characteristic.

        Raises:
            ConnectionError: If the device cannot be reached or has no
                DF02 characteristic.
        """
        self._start_loop()
        future = asyncio.run_coroutine_threadsafe(self._connect(address), self._loop)
        try:
            future.result(timeout=self._connect_timeout + 5)
        except Exception as e:
            future.cancel()
            self._stop_loop()
            raise ConnectionError(
                f"Could not connect to {DEVICE_NAME_PREFIX} roaster at {address}. "
                f"Ensure it is powered on and in range. Last error: {e}"
            ) from e

        logger.info(
            "Connected to %s (write characteristic %s)",
            address,
            self._device_info.write_characteristic,
        )
        return self._device_info

    def close(self) -> None:
        """Disconnect and stop the event loop thread."""
        if self._loop is None:
            return

        try:
            if self._client is not None:
                future = asyncio.run_coroutine_threadsafe(
                    self._client.disconnect(), self._loop
                )
                future.result(timeout=self._connect_timeout)
        except Exception as e:
            logger.warning("Error closing BLE connection: %s", e)
        finally:
            self._client = None
            self._char = None
            self._connected = False
            self._stop_loop()
            logger.info("Disconnected")

    def send(self, data: bytes) -> None:
        """Queue a frame for a write-without-response and return immediately.

        Raises:
            ConnectionError: If not connected.
            ValueError: If ``data`` is not a full frame.
        """
        if not self._connected or self._loop is None:
            raise ConnectionError("Not connected to roaster")

        if len(data) != FRAME_SIZE:
            raise ValueError(f"Frame must be {FRAME_SIZE} bytes, got {len(data)}")

        future = asyncio.run_coroutine_threadsafe(self._write(bytes(data)), self._loop)
        future.add_done_callback(self._on_write_done)

    # -- internals -----------------------------------------------------------

    async def _connect(self, address: str) -> None:
        client = BleakClient(
            address,
            disconnected_callback=self._on_disconnect,
            timeout=self._connect_timeout,
        )
        await client.connect()

        char = _find_write_characteristic(client)
        if char is None:
            await client.disconnect()
            raise ConnectionError(
                f"No characteristic starting with {WRITE_CHAR_PREFIX} on {address}"
            )

        self._client = client
        self._char = char
        self._connected = True
        self._device_info = DeviceInfo(address=address, write_characteristic=char.uuid)

    async def _write(self, data: bytes) -> None:
        await self._client.write_gatt_char(self._char, data, response=False)

    def _on_write_done(self, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.warning("BLE write failed: %s", error)

    def _on_disconnect(self, client: BleakClient) -> None:
        if self._connected:
            logger.warning("Roaster %s dropped the connection", client.address)
        self._connected = False

    def _start_loop(self) -> None:
        if self._loop is not None:
            return
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="sr900-ble", daemon=True
        )
        self._thread.start()

    def _stop_loop(self) -> None:
        if self._loop is None:
            return
        if self._thread is not None and self._thread.is_alive():
            future = asyncio.run_coroutine_threadsafe(_cancel_pending(), self._loop)
            try:
                future.result(timeout=STOP_TIMEOUT_S)
            except Exception as e:
                logger.warning("Pending BLE tasks did not finish: %s", e)
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=STOP_TIMEOUT_S)

        if self._thread is not None and self._thread.is_alive():
            # A running loop cannot be closed; the daemon thread ends with the process.
            logger.warning("BLE event loop thread did not stop in time")
        else:
            self._loop.close()
        self._loop = None
        self._thread = None


async def _cancel_pending() -> None:
    current = asyncio.current_task()
    tasks = [t for t in asyncio.all_tasks() if t is not current]
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def _find_write_characteristic(client: BleakClient) -> BleakGATTCharacteristic | None:
    for service in client.services:
        for char in service.characteristics:
            if char.uuid.lower().replace("-", "").startswith(WRITE_CHAR_PREFIX):
                return char
    return None
