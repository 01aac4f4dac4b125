from typing import Any, Optional

from pydantic import BaseModel, Field


class ItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    content: Any = None  # Any JSON value; defaults to an empty list


class ItemUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    content: Any = None
    # The version the client last read. May instead be sent as an If-Match ETag.
    version: Optional[int] = Field(default=None, gt=0)


class ShareRequest(BaseModel):
    user_id: int = Field(gt=0)  # ID of user to share with
    role: str  # editor or viewer
