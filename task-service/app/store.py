"""Redis-backed gateway for Task records.

Each task is one JSON document at ``task:{id}``. The sorted set
``tasks:index`` holds every task id scored by a counter (``tasks:seq``)
taken at creation, which gives the default listing order and the full set of
ids in one call. ``createdAt`` is data only and never used for ordering.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, get_args

from redis.asyncio import Redis
from redis.exceptions import WatchError

from app.errors import TaskNotFound, TaskValidationError
from app.models import Status

logger = logging.getLogger(__name__)

STATUSES = get_args(Status)
DEFAULT_STATUS = "pending"
INDEX_KEY = "tasks:index"
SEQ_KEY = "tasks:seq"
SORTABLE_FIELDS = ("title", "description", "status", "createdAt", "updatedAt")
UPDATABLE_FIELDS = ("title", "description", "status")


class TaskPage(NamedTuple):
    tasks: List[Dict[str, Any]]
    total_count: int


def task_key(task_id: str) -> str:
    return f"task:{task_id}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _is_task_id(value: str) -> bool:
    try:
        return str(uuid.UUID(value)) == value
    except (ValueError, TypeError, AttributeError):
        return False


def _check_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TaskValidationError(field, "must be a non-empty string")
    return value


def _check_status(value: Any) -> str:
    if value not in STATUSES:
        raise TaskValidationError("status", f"must be one of {', '.join(STATUSES)}")
    return value


class TaskStore:
    def __init__(self, redis: Redis, page_size: int = 10):
        self.redis = redis
        self.page_size = page_size

    async def ping(self) -> bool:
        return bool(await self.redis.ping())

    async def create(
        self, title: Any, description: Any, status: Optional[str] = None
    ) -> Dict[str, Any]:
        title = _check_text("title", title)
        description = _check_text("description", description)
        status = DEFAULT_STATUS if status is None else _check_status(status)

        task_id = str(uuid.uuid4())
        created = _now()
        task = {
            "id": task_id,
            "title": title,
            "description": description,
            "status": status,
            "createdAt": created.isoformat(),
            "updatedAt": created.isoformat(),
        }
        seq = await self.redis.incr(SEQ_KEY)
        async with self.redis.pipeline(transaction=True) as p:
            p.set(task_key(task_id), json.dumps(task))
            p.zadd(INDEX_KEY, {task_id: seq})
            await p.execute()
        logger.info("Created task %s", task_id)
        return task

    async def list(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
        sort_field: Optional[str] = None,
        filter_text: Optional[str] = None,
        status: Optional[str] = None,
    ) -> TaskPage:
        if limit is None:
            limit = self.page_size
        if limit < 0:
            raise TaskValidationError("limit", "must not be negative")
        if offset < 0:
            raise TaskValidationError("offset", "must not be negative")
        if status is not None:
            _check_status(status)

        descending = False
        if sort_field:
            descending = sort_field.startswith("-")
            sort_field = sort_field.lstrip("-+")
            if sort_field not in SORTABLE_FIELDS:
                raise TaskValidationError(
                    "sort", f"must be one of {', '.join(SORTABLE_FIELDS)}"
                )
        else:
            sort_field = "createdAt"

        if status is None and not filter_text and sort_field == "createdAt" and not descending:
            # Plain creation-order page: read only the slice of the index
            total = await self.redis.zcard(INDEX_KEY)
            if limit == 0:
                return TaskPage(tasks=[], total_count=total)
            ids = await self.redis.zrange(INDEX_KEY, offset, offset + limit - 1)
            return TaskPage(tasks=await self._load(ids), total_count=total)

        tasks = await self._load(await self.redis.zrange(INDEX_KEY, 0, -1))

        if status is not None:
            tasks = [t for t in tasks if t["status"] == status]
        if filter_text:
            needle = filter_text.lower()
            tasks = [
                t
                for t in tasks
                if needle in t["title"].lower() or needle in t["description"].lower()
            ]

        # Index order is creation order; sorted() is stable, so ties keep it
        if sort_field != "createdAt" or descending:
            tasks = sorted(tasks, key=lambda t: t[sort_field], reverse=descending)

        return TaskPage(tasks=tasks[offset : offset + limit], total_count=len(tasks))

    async def _load(self, ids) -> List[Dict[str, Any]]:
        if not ids:
            return []
        raw = await self.redis.mget([task_key(i) for i in ids])
        # A delete can land between ZRANGE and MGET; those slots come back None
        return [json.loads(doc) for doc in raw if doc is not None]

    async def get(self, task_id: str) -> Dict[str, Any]:
        if not _is_task_id(task_id):
            raise TaskNotFound(task_id)
        raw = await self.redis.get(task_key(task_id))
        if raw is None:
            logger.debug("Task %s not found", task_id)
            raise TaskNotFound(task_id)
        return json.loads(raw)

    async def update(self, task_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        for key in fields:
            if key not in UPDATABLE_FIELDS:
                raise TaskValidationError(key, "is not an updatable field")
        if "title" in fields:
            _check_text("title", fields["title"])
        if "description" in fields:
            _check_text("description", fields["description"])
        if "status" in fields:
            _check_status(fields["status"])

        if not _is_task_id(task_id):
            raise TaskNotFound(task_id)
        key = task_key(task_id)
        async with self.redis.pipeline(transaction=True) as p:
            while True:
                try:
                    # Any write to the key after WATCH aborts EXEC, and we start over
                    await p.watch(key)
                    raw = await p.get(key)
                    if raw is None:
                        raise TaskNotFound(task_id)
                    task = json.loads(raw)
                    task.update(fields)
                    task["updatedAt"] = _now().isoformat()
                    p.multi()
                    p.set(key, json.dumps(task))
                    await p.execute()
                    break
                except WatchError:
                    logger.debug("Task %s changed during update, retrying", task_id)
                    continue
        logger.info("Updated task %s (%s)", task_id, ", ".join(fields) or "no fields")
        return task

    async def remove(self, task_id: str) -> None:
        if not _is_task_id(task_id):
            raise TaskNotFound(task_id)
        async with self.redis.pipeline(transaction=True) as p:
            p.delete(task_key(task_id))
            p.zrem(INDEX_KEY, task_id)
            deleted, _ = await p.execute()
        if not deleted:
            raise TaskNotFound(task_id)
        logger.info("Deleted task %s", task_id)
