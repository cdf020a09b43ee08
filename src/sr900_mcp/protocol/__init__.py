"""Protocol layer: frame encoding and command builders."""

from .framing import (
    Frame,
    FrameEncoder,
    FrameOverflowError,
    FrameSequenceError,
    FrameState,
    NotConnectedError,
)
from .commands import CommandBuilder, MessageType
