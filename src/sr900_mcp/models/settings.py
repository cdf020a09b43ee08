"""Roaster settings, sent as the subtype byte of an Update Settings frame.

Subtype bits::

    0x80  temperature shown in Fahrenheit
    0x40  external thermistor
    0x04  high supply voltage
    0x02  average supply voltage
    0x01  low supply voltage
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

FAHRENHEIT_FLAG = 0x80
EXTERNAL_THERMISTOR_FLAG = 0x40


class VoltageSupply(IntEnum):
    LOW = 0
    AVERAGE = 1
    HIGH = 2

    @classmethod
    def from_name(cls, name: str) -> VoltageSupply:
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown voltage supply {name!r}. Valid: {[v.name for v in cls]}"
            ) from None


VOLTAGE_FLAGS: dict[VoltageSupply, int] = {
    VoltageSupply.LOW: 0x01,
    VoltageSupply.AVERAGE: 0x02,
    VoltageSupply.HIGH: 0x04,
}


@dataclass
class RoasterSettings:
    """Display unit, thermistor source, and mains voltage of the roaster."""

    fahrenheit: bool = True
    external_thermistor: bool = False
    voltage: VoltageSupply = VoltageSupply.AVERAGE

    def to_subtype(self) -> int:
        subtype = VOLTAGE_FLAGS[VoltageSupply(self.voltage)]
        if self.fahrenheit:
            subtype |= FAHRENHEIT_FLAG
        if self.external_thermistor:
            subtype |= EXTERNAL_THERMISTOR_FLAG
        return subtype

    @classmethod
    def from_subtype(cls, subtype: int) -> RoasterSettings:
        for voltage, flag in VOLTAGE_FLAGS.items():
            if subtype & flag:
                break
        else:
            raise ValueError(f"Subtype 0x{subtype:02X} carries no voltage flag")
        return cls(
            fahrenheit=bool(subtype & FAHRENHEIT_FLAG),
            external_thermistor=bool(subtype & EXTERNAL_THERMISTOR_FLAG),
            voltage=voltage,
        )

    def to_dict(self) -> dict:
        return {
            "temperature_unit": "F" if self.fahrenheit else "C",
            "thermistor": "external" if self.external_thermistor else "internal",
            "voltage": VoltageSupply(self.voltage).name,
            "subtype": f"0x{self.to_subtype():02X}",
        }
