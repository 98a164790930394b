"""Salon booking core: slot availability, slot holds, and cart/order totals."""

__version__ = "0.1.0"
