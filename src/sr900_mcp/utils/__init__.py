"""Shared helpers: checksum and random byte sources."""
