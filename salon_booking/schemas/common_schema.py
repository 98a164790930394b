"""Shared result shapes."""

from pydantic import BaseModel, ConfigDict, Field


class ValidationResult(BaseModel):
    """Accumulated validation outcome. Problems are reported, never raised."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))
