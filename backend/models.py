from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Union

MAX_TASK_LENGTH = 120

class Task(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    done: bool = False
    created_at: Union[int, float] = Field(alias="createdAt")  # epoch milliseconds

class TaskCreate(BaseModel):
    text: str = Field(max_length=MAX_TASK_LENGTH)

class TaskBatchCreate(BaseModel):
    texts: list[str] = Field(default_factory=list)

class TaskStats(BaseModel):
    total: int
    done: int
    remaining: int

class SuggestRequest(BaseModel):
    """Body of POST /api/ai-todo. Non-string fields are read as empty."""
    prompt: str = ""
    api_key: str = Field(default="", alias="apiKey")
    model: str = ""

    @field_validator("prompt", "api_key", "model", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return value.strip() if isinstance(value, str) else ""

class SuggestResponse(BaseModel):
    tasks: list[str]
