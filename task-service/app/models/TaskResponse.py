from typing import List, Literal
from pydantic import BaseModel

Status = Literal["pending", "in-progress", "completed"]


class TaskResponse(BaseModel):
    id: str
    title: str
    description: str
    status: Status
    createdAt: str
    updatedAt: str


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
    totalCount: int
