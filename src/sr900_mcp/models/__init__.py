"""Data models for roast profiles and roaster settings."""

from .profile import RoastProfile
from .settings import RoasterSettings, VoltageSupply
