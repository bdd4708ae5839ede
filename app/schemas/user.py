"""Person and family settings schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from app.utils.time import parse_weekday

PRIVILEGED_ROLES = frozenset({"parent"})


class Profile(BaseModel):
    """A household member as seen by the reconciliation engine."""

    id: str
    display_name: str
    role: str = "child"
    is_active: bool = True

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES


class FamilySettings(BaseModel):
    """Family-wide quota settings."""

    week_start_day: int = Field(default=0, ge=0, le=6)
    weekly_incomplete_penalty_percent: Decimal = Field(default=Decimal("0.10"), ge=0)

    @field_validator("week_start_day", mode="before")
    @classmethod
    def _parse_week_start_day(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_weekday(value)
        return value
