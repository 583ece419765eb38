import json
import time
import uuid
from typing import Iterable, Iterator, Optional

from database import KeyValueStorage
from models import Task

STORAGE_KEY = "ai-todo-items"
FILTER_MODES = ("all", "active", "done")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_task_record(value) -> bool:
    """Structural check for one persisted entry."""
    return (
        isinstance(value, dict)
        and isinstance(value.get("id"), str)
        and isinstance(value.get("text"), str)
        and isinstance(value.get("done"), bool)
        and _is_number(value.get("createdAt"))
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


class TaskStore:
    """
    Ordered task list mirrored to key-value storage.

    New tasks go to the head of the list. Every mutation rewrites the whole
    persisted list; there is no merge with what storage held before.
    """

    def __init__(self, storage: KeyValueStorage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key
        self.tasks: list[Task] = []

    def load(self) -> list[Task]:
        """Replace the in-memory list with what storage holds. Bad data reads as empty."""
        self.tasks = self._read()
        return self.tasks

    def _read(self) -> list[Task]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError):  # ValueError includes UnicodeDecodeError
            return []
        if not isinstance(parsed, list):
            return []
        return [Task.model_validate(entry) for entry in parsed if is_task_record(entry)]

    def persist(self) -> None:
        data = [task.model_dump(by_alias=True) for task in self.tasks]
        self.storage.set(self.key, json.dumps(data, ensure_ascii=False).encode("utf-8"))

    def get(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def _create(self, text: str) -> Optional[Task]:
        text = text.strip()
        if not text:
            return None
        return Task(id=_new_id(), text=text, done=False, created_at=_now_ms())

    def add(self, text: str) -> Optional[Task]:
        task = self._create(text)
        if task is None:
            return None
        self.tasks.insert(0, task)
        self.persist()
        return task

    def add_many(self, texts: Iterable[str]) -> list[Task]:
        """
        Add several tasks at once (accepting suggestions).
        The head of the list ends up in the same order as texts.
        """
        created = [task for task in (self._create(text) for text in texts) if task]
        if created:
            self.tasks[:0] = created
            self.persist()
        return created

    def toggle(self, task_id: str) -> Optional[Task]:
        task = self.get(task_id)
        if task is None:
            return None
        task.done = not task.done
        self.persist()
        return task

    def remove(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self.persist()
        return True

    def clear_completed(self) -> int:
        remaining = [task for task in self.tasks if not task.done]
        removed = len(self.tasks) - len(remaining)
        self.tasks = remaining
        self.persist()
        return removed

    def filter(self, mode: str = "all") -> Iterator[Task]:
        """Lazy view over the list. Does not copy or mutate it."""
        if mode not in FILTER_MODES:
            raise ValueError(f"Unknown filter mode: {mode!r}")
        if mode == "active":
            return (task for task in self.tasks if not task.done)
        if mode == "done":
            return (task for task in self.tasks if task.done)
        return iter(self.tasks)

    def stats(self) -> dict:
        done = sum(1 for task in self.tasks if task.done)
        return {"total": len(self.tasks), "done": done, "remaining": len(self.tasks) - done}
