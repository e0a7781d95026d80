import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.config import Settings, load_settings
from app.errors import TaskNotFound, TaskValidationError
from app.logging_setup import setup_logging
from app.models import Status, TaskCreate, TaskListResponse, TaskResponse, TaskUpdate
from app.store import TaskStore

logger = logging.getLogger(__name__)


def get_store(request: Request) -> TaskStore:
    return request.app.state.store


def create_app(settings: Optional[Settings] = None, store: Optional[TaskStore] = None) -> FastAPI:
    """Build the task service.

    When ``store`` is given it is used as is. Otherwise, on startup, root
    logging is configured and a Redis client is opened from ``settings``;
    the client is closed on shutdown.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if store is not None:
            app.state.store = store
            yield
            return
        setup_logging(settings.log_level)
        client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            decode_responses=True,
        )
        app.state.store = TaskStore(client, page_size=settings.page_size)
        logger.info("Using Redis at %s:%s/%s", settings.redis_host, settings.redis_port, settings.redis_db)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Task Service", lifespan=lifespan)

    @app.exception_handler(TaskNotFound)
    async def task_not_found(request: Request, exc: TaskNotFound):
        return JSONResponse(status_code=404, content={"detail": "Task not found"})

    @app.exception_handler(TaskValidationError)
    async def task_invalid(request: Request, exc: TaskValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_invalid(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(RedisError)
    async def store_failed(request: Request, exc: RedisError):
        logger.error("Task store error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Task store unavailable"})

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/health/ready")
    async def ready(store: TaskStore = Depends(get_store)):
        try:
            await store.ping()
        except RedisError:
            logger.warning("Readiness check failed", exc_info=True)
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    @app.post("/tasks", status_code=201, response_model=TaskResponse)
    async def create_task(task: TaskCreate, store: TaskStore = Depends(get_store)):
        return await store.create(task.title, task.description, task.status)

    @app.get("/tasks", response_model=TaskListResponse)
    async def list_tasks(
        limit: int = Query(default=settings.page_size, ge=1, le=settings.max_page_size),
        page: int = Query(default=1, ge=1),
        sort: Optional[str] = Query(default=None),
        filter_text: Optional[str] = Query(default=None, alias="filter"),
        status: Optional[Status] = Query(default=None),
        store: TaskStore = Depends(get_store),
    ):
        result = await store.list(
            limit=limit,
            offset=(page - 1) * limit,
            sort_field=sort,
            filter_text=filter_text,
            status=status,
        )
        return TaskListResponse(tasks=result.tasks, totalCount=result.total_count)

    @app.get("/tasks/{task_id}", response_model=TaskResponse)
    async def get_task(task_id: str, store: TaskStore = Depends(get_store)):
        return await store.get(task_id)

    @app.patch("/tasks/{task_id}", response_model=TaskResponse)
    async def update_task(task_id: str, updates: TaskUpdate, store: TaskStore = Depends(get_store)):
        return await store.update(task_id, updates.model_dump(exclude_unset=True))

    @app.delete("/tasks/{task_id}", status_code=204)
    async def delete_task(task_id: str, store: TaskStore = Depends(get_store)):
        await store.remove(task_id)
        return Response(status_code=204)

    return app


app = create_app()


def run():
    """Serve the app with uvicorn (``task-service`` console script)."""
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)
