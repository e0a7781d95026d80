from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.TaskResponse import Status


class TaskUpdate(BaseModel):
    # Only fields the client actually sent are applied, see model_dump(exclude_unset=True)
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    status: Optional[Status] = None
