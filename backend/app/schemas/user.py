from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class TelegramUser(BaseModel):
    """Identity carried in the `user` field of verified initData."""

    # must fit the BigInteger primary key
    id: int = Field(ge=-2**63, le=2**63 - 1)

    # None means "not sent by Telegram"; "" is kept as sent
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def reject_bool_id(cls, v):
        if isinstance(v, bool):
            raise ValueError("id must be a number")
        return v


class TelegramUserRead(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None
    display_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
