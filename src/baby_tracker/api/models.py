"""Request bodies for the HTTP API."""

from pydantic import BaseModel, Field


class TemperatureRequest(BaseModel):
    """Temperature reading; the stepper value is used when omitted."""

    temperature: float | None = Field(default=None, ge=34.0, le=42.0)


class TemperatureAdjustRequest(BaseModel):
    """Stepper adjustment in degrees."""

    delta: float


class VitaminRequest(BaseModel):
    """Desired toggle state."""

    given: bool


class SettingsRequest(BaseModel):
    """Record store credentials entered by the user."""

    token: str
    base_id: str
    table_name: str | None = None
