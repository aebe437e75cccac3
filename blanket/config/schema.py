"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field

DEFAULT_COLOR = "white"


class ApiConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = "https://db.blanketbuddy.app"
    table_id: str = "mc1rg3em8tzigqr"
    view_id: str = "vwb8k4qgarb7brlt"
    limit: int = Field(default=365, ge=1)
    shuffle: int = Field(default=0, ge=0, le=1)
    offset: int = Field(default=0, ge=0)
    token: str = ""  # falls back to BLANKET_API_TOKEN
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    filter_by_postal_code: bool = True


class RangeConfig(BaseModel):
    model_config = {"extra": "forbid"}

    lower_bound: float
    upper_bound: float
    color: str


class ColorConfig(BaseModel):
    model_config = {"extra": "forbid"}

    default_color: str = DEFAULT_COLOR
    ranges: list[RangeConfig] = []


class ReminderConfig(BaseModel):
    model_config = {"extra": "forbid"}

    identifier: str = "blanketReminder"
    title: str = "Daily Blanket Reminder"
    body: str = "Don't forget to do a row of your blanket today!"
    test_delay_seconds: float = Field(default=5.0, gt=0.0)


class DisplayConfig(BaseModel):
    model_config = {"extra": "forbid"}

    show_knit_purl: bool = False
    knit_label: str = "K"
    purl_label: str = "P"


class OpsConfig(BaseModel):
    model_config = {"extra": "forbid"}

    reminder_poll_seconds: int = Field(default=30, ge=1)


class BlanketConfig(BaseModel):
    model_config = {"extra": "forbid"}

    api: ApiConfig = ApiConfig()
    colors: ColorConfig = ColorConfig()
    reminder: ReminderConfig = ReminderConfig()
    display: DisplayConfig = DisplayConfig()
    ops: OpsConfig = OpsConfig()
