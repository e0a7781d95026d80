# tests/test_models.py

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.models import TaskCreate, TaskUpdate


def test_task_create_status_is_optional() -> None:
    task = TaskCreate(title="t", description="d")
    assert task.status is None


def test_task_create_rejects_unknown_status() -> None:
    with pytest.raises(ValidationError):
        TaskCreate(title="t", description="d", status="done")


def test_task_update_dumps_only_sent_fields() -> None:
    update = TaskUpdate(status="completed")
    assert update.model_dump(exclude_unset=True) == {"status": "completed"}


def test_task_update_forbids_extra_fields() -> None:
    with pytest.raises(ValidationError):
        TaskUpdate(createdAt="2024-01-01T00:00:00+00:00")
