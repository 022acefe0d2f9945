from .base import BaseModel, TimeStampedModel, UserStampedModel

__all__ = [
    "BaseModel",
    "TimeStampedModel",
    "UserStampedModel",
]
