"""Frame encoder for messages sent to the SR900 roaster.

Frame layout (34 bytes, fixed)::

    +-------+---------+---------+------------------+----------+--------+------------+
    | Start | Header  | Address |     Payload      | Checksum | Footer | Terminator |
    | 0x20  | 4 bytes | 6 bytes | 20 bytes         | 1 byte   | 0x30   | 0x03       |
    +-------+---------+---------+------------------+----------+--------+------------+
      [0]     [1..4]    [5..10]   [11..30]           [31]       [32]     [33]

- Header: ``53 45 51 4F`` for the first frame an encoder builds, then four
  fresh random bytes in [1, 255] before every following frame.
- Payload: bytes the caller does not write are filled with random bytes in
  [1, 255] before the checksum is taken.
- Checksum: sum of offsets 1..30 modulo 256. The start byte is not included;
  the roaster firmware expects exactly this range.

Command frames put a subtype byte and a message type byte between the
header and the address (see :meth:`FrameEncoder.append_message_type`), which
shifts the address to offsets 7..12.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..utils.checksum import sum8
from ..utils.rand import RandomSource, SystemRandomSource

if TYPE_CHECKING:
    from ..transport.base import Transport

logger = logging.getLogger(__name__)

FRAME_SIZE = 34
START_BYTE = 0x20
FOOTER_BYTE = 0x30
TERMINATOR_BYTE = 0x03
SEED_HEADER = b"\x53\x45\x51\x4F"

HEADER_OFFSET = 1
ADDRESS_OFFSET = 5
PAYLOAD_OFFSET = 11
CHECKSUM_OFFSET = 31
FOOTER_OFFSET = 32
TERMINATOR_OFFSET = 33

HEADER_SIZE = 4
ADDRESS_SIZE = 6
PAD_MIN = 1
PAD_MAX = 255


class FrameSequenceError(RuntimeError):
    """An encoder operation was called outside its allowed state."""


class FrameOverflowError(FrameSequenceError):
    """A write would run past the end of its region."""


class NotConnectedError(ConnectionError):
    """A frame was built but the transport was not connected to send it."""

    def __init__(self, frame: Frame) -> None:
        super().__init__("Transport not connected; frame was not sent")
        self.frame = frame


class FrameState(Enum):
    IDLE = "idle"
    HEADER_WRITTEN = "header_written"
    TYPE_WRITTEN = "type_written"
    ADDRESS_WRITTEN = "address_written"
    PAYLOAD_WRITTEN = "payload_written"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class Frame:
    """A completed 34-byte frame and whether it was handed to the transport."""

    data: bytes
    sent: bool

    @property
    def header(self) -> bytes:
        return self.data[HEADER_OFFSET : HEADER_OFFSET + HEADER_SIZE]

    @property
    def checksum(self) -> int:
        return self.data[CHECKSUM_OFFSET]

    def hex(self) -> str:
        return self.data.hex(" ").upper()

    def __repr__(self) -> str:
        return f"Frame(data={self.hex()}, sent={self.sent})"


def parse_device_address(text: str) -> bytes:
    """Parse ``AA:BB:CC:DD:EE:FF`` (``:``, ``-`` or no separator) to 6 bytes."""
    cleaned = text.strip().replace(":", "").replace("-", "")
    try:
        address = bytes.fromhex(cleaned)
    except ValueError as e:
        raise ValueError(f"Invalid device address {text!r}") from e
    if len(address) != ADDRESS_SIZE:
        raise ValueError(
            f"Device address must be {ADDRESS_SIZE} bytes, got {len(address)}"
        )
    return address


class FrameEncoder:
    """Builds outgoing frames one at a time and hands them to a transport.

    Usage::

        encoder = FrameEncoder(transport, device_address=mac)
        encoder.begin_frame()
        encoder.append_device_address()
        frame = encoder.finalize_frame()

    Not thread-safe. Use one encoder per roaster session or serialize calls.
    """

    def __init__(
        self,
        transport: Transport,
        device_address: bytes = bytes(ADDRESS_SIZE),
        random_source: RandomSource | None = None,
    ) -> None:
        self._transport = transport
        self._random = random_source or SystemRandomSource()
        self._device_address = bytes(ADDRESS_SIZE)
        self.device_address = device_address
        self._header = bytearray(SEED_HEADER)
        self._is_first_frame = True
        self._buffer = bytearray(FRAME_SIZE)
        self._cursor = 0
        self._state = FrameState.IDLE
        self.last_checksum: int | None = None

    @property
    def device_address(self) -> bytes:
        return self._device_address

    @device_address.setter
    def device_address(self, value: bytes) -> None:
        address = bytes(value)
        if len(address) != ADDRESS_SIZE:
            raise ValueError(
                f"Device address must be {ADDRESS_SIZE} bytes, got {len(address)}"
            )
        self._device_address = address

    @property
    def header(self) -> bytes:
        return bytes(self._header)

    @property
    def is_first_frame(self) -> bool:
        return self._is_first_frame

    @property
    def state(self) -> FrameState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def buffer(self) -> bytes:
        return bytes(self._buffer)

    # -- operations ----------------------------------------------------------

    def begin_frame(self) -> None:
        """Start a new frame: start byte plus header, cursor at 5.

        Discards any frame in progress. The header is rotated unless this
        encoder has not completed a frame yet.
        """
        if not self._is_first_frame:
            for i in range(HEADER_SIZE):
                self._header[i] = self._random.next_byte_in_range(PAD_MIN, PAD_MAX)

        self._buffer = bytearray(FRAME_SIZE)
        self._cursor = 0
        self._write(START_BYTE)
        for byte in self._header:
            self._write(byte)
        self._state = FrameState.HEADER_WRITTEN

    def append_message_type(self, message_type: int, subtype: int = 0x00) -> None:
        """Write the subtype and message type bytes right after the header."""
        self._expect("append_message_type", FrameState.HEADER_WRITTEN)
        for value in (subtype, message_type):
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Byte value must be 0-255, got {value}")
        self._write(subtype)
        self._write(message_type)
        self._state = FrameState.TYPE_WRITTEN

    def append_device_address(self) -> None:
        """Write the 6-byte device address at the cursor."""
        self._expect(
            "append_device_address",
            FrameState.HEADER_WRITTEN,
            FrameState.TYPE_WRITTEN,
        )
        for byte in self._device_address:
            self._write(byte)
        self._state = FrameState.ADDRESS_WRITTEN

    def append_payload(self, data: bytes) -> None:
        """Write caller payload bytes; they must end before the checksum.

        Once a payload is written the address and message type can no
        longer be appended; only more payload or finalize may follow.
        """
        self._expect(
            "append_payload",
            FrameState.TYPE_WRITTEN,
            FrameState.ADDRESS_WRITTEN,
            FrameState.PAYLOAD_WRITTEN,
        )
        data = bytes(data)
        if self._cursor + len(data) > CHECKSUM_OFFSET:
            raise FrameOverflowError(
                f"Payload of {len(data)} bytes at offset {self._cursor} "
                f"runs past offset {CHECKSUM_OFFSET - 1}"
            )
        for byte in data:
            self._write(byte)
        self._state = FrameState.PAYLOAD_WRITTEN

    def compute_checksum(self) -> int:
        """Checksum over offsets 1..30 of the current buffer."""
        self.last_checksum = sum8(self._buffer[HEADER_OFFSET:CHECKSUM_OFFSET])
        return self.last_checksum

    def finalize_frame(self, require_connection: bool = False) -> Frame:
        """Pad, checksum and terminate the frame, then send it if connected.

        Args:
            require_connection: Raise :class:`NotConnectedError` instead of
                returning an unsent frame when the transport is down.

        Returns:
            The completed frame. ``frame.sent`` is False when the transport
            reported itself disconnected.

        Raises:
            FrameSequenceError: If no header/address cycle is in progress,
                including a second call after a frame was finalized.
            NotConnectedError: If ``require_connection`` is set and the
                frame could not be sent. The encoder remains usable.
        """
        self._expect(
            "finalize_frame",
            FrameState.TYPE_WRITTEN,
            FrameState.ADDRESS_WRITTEN,
            FrameState.PAYLOAD_WRITTEN,
        )
        while self._cursor < CHECKSUM_OFFSET:
            self._write(self._random.next_byte_in_range(PAD_MIN, PAD_MAX))

        self._write(self.compute_checksum())
        self._write(FOOTER_BYTE)
        # Terminal write; the cursor stays on the terminator.
        self._check_room()
        self._buffer[self._cursor] = TERMINATOR_BYTE

        self._state = FrameState.FINALIZED
        self._is_first_frame = False

        data = bytes(self._buffer)
        logger.debug("Frame ready: %s", data.hex(" "))

        if self._transport.is_connected():
            self._transport.send(data)
            frame = Frame(data=data, sent=True)
        else:
            logger.warning("Transport not connected, frame not sent")
            frame = Frame(data=data, sent=False)
            if require_connection:
                raise NotConnectedError(frame)
        return frame

    # -- internals -----------------------------------------------------------

    def _expect(self, operation: str, *allowed: FrameState) -> None:
        if self._state not in allowed:
            raise FrameSequenceError(
                f"{operation}() not allowed in state {self._state.value}"
            )

    def _check_room(self) -> None:
        if self._cursor >= FRAME_SIZE:
            raise FrameOverflowError(
                f"Write at offset {self._cursor} exceeds frame size {FRAME_SIZE}"
            )

    def _write(self, value: int) -> None:
        self._check_room()
        self._buffer[self._cursor] = value
        self._cursor += 1
