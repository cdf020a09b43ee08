"""Transports that carry encoded frames to the roaster."""

from .base import Transport
