from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.TaskResponse import Status


class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    status: Optional[Status] = None
