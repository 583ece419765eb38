import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_MODEL = "doubao-seed-1-8-251228"
DEFAULT_BASE_URL = "https://ark.cn-beijing.volces.com/api/v3"
DEFAULT_HTTP_TIMEOUT = 60.0
DEFAULT_CORS_ORIGINS = "http://localhost:5173"


@dataclass(frozen=True)
class ProviderSettings:
    api_key: str
    model: str
    base_url: str

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"


def _coalesce(*values: Optional[str]) -> str:
    """Return the first non-empty value, or an empty string."""
    for value in values:
        if value:
            return value
    return ""


def resolve_provider_settings(
    api_key: str = "",
    model: str = "",
    env: Optional[Mapping[str, str]] = None,
) -> ProviderSettings:
    """
    Resolve provider settings for one request.
    Caller values win over the environment, the environment wins over the
    hardcoded fallbacks. api_key may come back empty; callers decide what
    that means.
    """
    if env is None:
        env = os.environ

    base_url = _coalesce(env.get("DOUBAO_API_BASE_URL"), DEFAULT_BASE_URL)
    return ProviderSettings(
        api_key=_coalesce(api_key, env.get("DOUBAO_API_KEY"), env.get("ARK_API_KEY")),
        model=_coalesce(model, env.get("DOUBAO_MODEL"), DEFAULT_MODEL),
        base_url=base_url.rstrip("/"),
    )


def http_timeout() -> float:
    raw = os.getenv("AI_TODO_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        print(f"Ignoring invalid AI_TODO_HTTP_TIMEOUT: {raw!r}")
        return DEFAULT_HTTP_TIMEOUT


def cors_origins() -> list[str]:
    raw = os.getenv("AI_TODO_CORS_ORIGINS") or DEFAULT_CORS_ORIGINS
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
