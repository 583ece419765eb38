from contextlib import asynccontextmanager
from typing import Literal
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import httpx
from dotenv import load_dotenv

from config import cors_origins, http_timeout
from database import init_db, SqliteStorage
from models import Task, TaskCreate, TaskBatchCreate, TaskStats, SuggestRequest, SuggestResponse
from store import TaskStore
from suggestions import suggest_tasks, SuggestionError, ValidationError

load_dotenv()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_db()
    store = TaskStore(SqliteStorage())
    store.load()
    app.state.store = store
    async with httpx.AsyncClient(timeout=http_timeout()) as client:
        app.state.http_client = client
        yield
    # Shutdown: the HTTP client is closed by the context manager

app = FastAPI(title="AI Todo", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store(request: Request) -> TaskStore:
    return request.app.state.store


# Task handlers are async so mutations run one at a time on the event loop

@app.get("/tasks")
async def get_tasks(
    mode: Literal["all", "active", "done"] = Query("all", alias="filter"),
    store: TaskStore = Depends(get_store),
) -> list[Task]:
    return list(store.filter(mode))


@app.get("/tasks/stats")
async def get_stats(store: TaskStore = Depends(get_store)) -> TaskStats:
    return TaskStats(**store.stats())


@app.post("/tasks")
async def create_task(task_data: TaskCreate, store: TaskStore = Depends(get_store)) -> Task:
    task = store.add(task_data.text)
    if task is None:
        raise HTTPException(status_code=400, detail="Task text must not be empty")
    return task


@app.post("/tasks/batch")
async def create_tasks(batch: TaskBatchCreate, store: TaskStore = Depends(get_store)) -> list[Task]:
    """Accept AI suggestions into the task list."""
    return store.add_many(batch.texts)


@app.patch("/tasks/{task_id}/toggle")
async def toggle_task(task_id: str, store: TaskStore = Depends(get_store)) -> Task:
    task = store.toggle(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@app.delete("/tasks/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_store)) -> dict:
    if not store.remove(task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return {"status": "deleted"}


@app.post("/tasks/clear-completed")
async def clear_completed(store: TaskStore = Depends(get_store)) -> dict:
    return {"removed": store.clear_completed()}


def _error_response(error: SuggestionError) -> JSONResponse:
    status_code = 400 if isinstance(error, ValidationError) else 502
    content = {"error": error.message}
    if error.detail is not None:
        content["detail"] = error.detail
    return JSONResponse(status_code=status_code, content=content)


@app.post("/api/ai-todo", response_model=SuggestResponse)
async def ai_todo(request: Request):
    """Decompose a goal description into short task suggestions."""
    # Read the body leniently: anything unparseable counts as an empty prompt
    try:
        body = await request.json()
    except (ValueError, RecursionError):
        body = None
    suggest_request = SuggestRequest.model_validate(body if isinstance(body, dict) else {})

    try:
        tasks = await suggest_tasks(
            request.app.state.http_client,
            suggest_request.prompt,
            api_key=suggest_request.api_key,
            model=suggest_request.model,
        )
    except SuggestionError as e:
        return _error_response(e)

    return SuggestResponse(tasks=tasks)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
