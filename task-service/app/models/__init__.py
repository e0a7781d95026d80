from app.models.TaskResponse import Status, TaskListResponse, TaskResponse
from app.models.TaskUpdate import TaskUpdate
from app.models.TasksCreate import TaskCreate

__all__ = ["Status", "TaskCreate", "TaskListResponse", "TaskResponse", "TaskUpdate"]
