"""
Status, category and power enums of the domain entities.

Member values equal member names, so they are stored and serialised as-is.
parse() resolves a string case-insensitively through a lookup table that is
built once per enum on first use.
"""

from enum import Enum

_LOOKUP_TABLES = {}


class LookupEnum(str, Enum):

    @classmethod
    def parse(cls, value):
        """Return the member whose name matches `value` ignoring case. Raises ValueError otherwise."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"{cls.__name__}: can't parse from {value!r}")
        table = _LOOKUP_TABLES.get(cls)
        if table is None:
            table = _LOOKUP_TABLES[cls] = {member.name.lower(): member for member in cls}
        member = table.get(value.strip().lower())
        if member is None:
            raise ValueError(f'{cls.__name__}: can\'t parse from "{value}"')
        return member

    def __str__(self):
        return self.value


class CustomerStatus(LookupEnum):
    Active = "Active"
    InRegistration = "InRegistration"
    Terminated = "Terminated"


class VehicleCategory(LookupEnum):
    Sedan = "Sedan"
    SUV = "SUV"
    Convertible = "Convertible"
    Van = "Van"
    Bike = "Bike"


class VehiclePower(LookupEnum):
    Gasoline = "Gasoline"
    Diesel = "Diesel"
    Electric = "Electric"
    Hybrid = "Hybrid"
    Hydrogen = "Hydrogen"


class VehicleStatus(LookupEnum):
    Active = "Active"
    Serviced = "Serviced"
    Terminated = "Terminated"


class ReservationStatus(LookupEnum):
    """
    Stages of the booking protocol:
      Inquired          customer asks whether the reservation can be met
      InquiryConfirmed  held in the store for the hold timeout
      Booked            confirmed by the customer within the hold window, durable
      Cancelled         terminal
    """
    Inquired = "Inquired"
    InquiryConfirmed = "InquiryConfirmed"
    Booked = "Booked"
    Cancelled = "Cancelled"
