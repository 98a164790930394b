"""Pydantic value types shared by the booking and commerce modules."""
