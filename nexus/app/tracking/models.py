"""Subscriber records as they are kept in Redis and in the cache."""

from pydantic import BaseModel, Field, field_validator


class SubscriberRecord(BaseModel):
    """Centers one subscriber tracks plus the chat that gets notified."""

    subscriptions: list[int] = Field(default_factory=list)
    chat_id: int

    @field_validator("subscriptions")
    @classmethod
    def _no_duplicates(cls, v: list[int]) -> list[int]:
        if len(set(v)) != len(v):
            raise ValueError("subscriptions must not contain duplicates")
        return v


class Manifest(BaseModel):
    """Every subscriber id ever seen, in first-seen order."""

    users: list[int] = Field(default_factory=list)
