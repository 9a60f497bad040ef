from sqlalchemy.orm import DeclarativeBase

from pharmapos.core.constants import STORE_INT_MAX


class Base(DeclarativeBase):
    pass


def fits_integer_column(value: int) -> bool:
    """False for ints the driver cannot bind to an INTEGER column at all."""
    return -STORE_INT_MAX - 1 <= value <= STORE_INT_MAX


__all__ = ["Base", "fits_integer_column"]
