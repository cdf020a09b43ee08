"""Roast profile model: 18 one-minute fan/heat steps.

Each step is packed into one byte, fan level in the high nibble and heat
level in the low nibble (fan 9, heat 2 -> ``0x92``). A level of 0 marks an
unused step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

PROFILE_STEPS = 18
MAX_LEVEL = 9

DEFAULT_FAN = [9, 9, 9, 8, 6, 7, 6, 6, 5, 5, 5, 4, 4, 4, 4, 0, 0, 0]
DEFAULT_HEAT = [2, 2, 3, 4, 6, 7, 8, 8, 8, 8, 7, 7, 0, 0, 0, 0, 0, 0]


@dataclass
class RoastProfile:
    """Fan and heater levels for each minute of a profile roast."""

    STEPS: ClassVar[int] = PROFILE_STEPS

    fan: list[int] = field(default_factory=lambda: list(DEFAULT_FAN))
    heat: list[int] = field(default_factory=lambda: list(DEFAULT_HEAT))

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ``ValueError`` unless both lists hold 18 levels in 0-9."""
        for name, levels in (("fan", self.fan), ("heat", self.heat)):
            if len(levels) != PROFILE_STEPS:
                raise ValueError(
                    f"{name} profile must have {PROFILE_STEPS} steps, got {len(levels)}"
                )
            for level in levels:
                if not 0 <= level <= MAX_LEVEL:
                    raise ValueError(
                        f"{name} level must be 0-{MAX_LEVEL}, got {level}"
                    )

    @property
    def duration_minutes(self) -> int:
        """Number of steps up to the last one with fan or heat set."""
        used = [i for i in range(PROFILE_STEPS) if self.fan[i] or self.heat[i]]
        return used[-1] + 1 if used else 0

    def to_bytes(self) -> bytes:
        self.validate()
        return bytes((f << 4) | h for f, h in zip(self.fan, self.heat))

    @classmethod
    def from_bytes(cls, data: bytes) -> RoastProfile:
        if len(data) != PROFILE_STEPS:
            raise ValueError(
                f"Profile data must be {PROFILE_STEPS} bytes, got {len(data)}"
            )
        return cls(fan=[b >> 4 for b in data], heat=[b & 0x0F for b in data])

    def to_dict(self) -> dict:
        return {
            "fan": list(self.fan),
            "heat": list(self.heat),
            "duration_minutes": self.duration_minutes,
            "raw_hex": self.to_bytes().hex(" "),
        }
