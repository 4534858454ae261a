from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    model: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")


class ChatResponse(BaseModel):
    reply: str


class HealthResponse(BaseModel):
    status: str
    time: str
