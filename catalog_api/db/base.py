"""Declarative base for SQLAlchemy models."""

from typing import Any

from sqlalchemy.orm import DeclarativeBase


# Largest value an INTEGER column stores (signed 64-bit)
MAX_INTEGER = 2**63 - 1


class Base(DeclarativeBase):
    pass


def fits_integer_column(value: Any) -> bool:
    """True when ``value`` is an int the database can bind without overflow."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return -MAX_INTEGER - 1 <= value <= MAX_INTEGER
