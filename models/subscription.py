# models/subscription.py
from datetime import datetime, time
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

# Loose E.164: optional "+", no leading zero, 7-15 digits
PHONE_PATTERN = r"^\+?[1-9]\d{6,14}$"


def _naive_time(value: time) -> time:
    # notify_at is a wall-clock time in the scheduler's zone
    if value.tzinfo is not None:
        raise ValueError("notify_at must not carry a UTC offset")
    return value


NaiveTime = Annotated[time, AfterValidator(_naive_time)]


class SubscriptionCreate(BaseModel):
    recipient: str = Field(..., pattern=PHONE_PATTERN, description="Phone number to text, E.164")
    origin_station: str = Field(..., min_length=1, max_length=64, description="Station code, e.g. A01")
    destination: str = Field(..., min_length=1, max_length=128, description="Where the rider is heading")
    notify_at: NaiveTime = Field(..., description="Time of day, HH:MM or HH:MM:SS")


class SubscriptionUpdate(BaseModel):
    recipient: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    origin_station: Optional[str] = Field(None, min_length=1, max_length=64)
    destination: Optional[str] = Field(None, min_length=1, max_length=128)
    notify_at: Optional[NaiveTime] = None

    @model_validator(mode="after")
    def _no_explicit_nulls(self):
        # omitted fields are fine; a field sent as null is not
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} must not be null")
        return self

    def changes(self) -> dict:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class Subscription(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient: str
    origin_station: str
    destination: str
    notify_at: time
    created_at: datetime
