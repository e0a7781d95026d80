class TaskError(Exception):
    """Base class for task service errors."""


class TaskNotFound(TaskError):
    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id!r} not found")
        self.task_id = task_id


class TaskValidationError(TaskError):
    """A task field is missing, blank or outside the allowed values."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
