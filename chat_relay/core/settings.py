import os
from dataclasses import dataclass


def _split_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip():
            return value.strip()
    return default


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    try:
        return max(minimum, int(os.getenv(name, str(default))))
    except ValueError:
        return default


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    try:
        return max(minimum, float(os.getenv(name, str(default))))
    except ValueError:
        return default


def _env_optional_number(name: str, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return cast(raw)
    except ValueError:
        return None


@dataclass
class Settings:
    upstream_url: str
    upstream_api_key: str
    default_model: str
    allowed_models: list[str]
    upstream_timeout_ms: int
    upstream_temperature: float | None
    upstream_max_tokens: int | None
    empty_reply_text: str
    frontend_origins: list[str]
    session_ttl_sec: int
    session_sweep_interval_sec: int
    history_window: int
    faq_threshold: float
    max_message_length: int
    max_profile_chars: int
    max_prompt_chars: int
    company_profile_path: str
    rate_limit_rpm: int
    log_level: str


def load_settings() -> Settings:
    default_model = _env("DEFAULT_MODEL", "AIML_MODEL", default="gemma-3-4b-it")
    allowed_models = _split_list(os.getenv("ALLOW_MODELS", ""))
    if not allowed_models:
        allowed_models = [default_model]
    session_ttl_sec = _env_int("SESSION_TTL_SEC", 25 * 60, minimum=1)
    return Settings(
        upstream_url=_env(
            "UPSTREAM_URL", "AIML_API_URL", default="http://localhost:11434/v1/chat/completions"
        ).rstrip("/"),
        upstream_api_key=_env("UPSTREAM_API_KEY", "AIML_API_KEY"),
        default_model=default_model,
        allowed_models=allowed_models,
        upstream_timeout_ms=_env_int("UPSTREAM_TIMEOUT_MS", 20000, minimum=1),
        upstream_temperature=_env_optional_number("UPSTREAM_TEMPERATURE", float),
        upstream_max_tokens=_env_optional_number("UPSTREAM_MAX_TOKENS", int),
        empty_reply_text=_env("EMPTY_REPLY_TEXT", default="No hay respuesta"),
        frontend_origins=_split_list(os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")),
        session_ttl_sec=session_ttl_sec,
        session_sweep_interval_sec=_env_int("SESSION_SWEEP_INTERVAL_SEC", session_ttl_sec, minimum=1),
        history_window=_env_int("HISTORY_WINDOW", 3, minimum=0),
        faq_threshold=min(1.0, _env_float("FAQ_THRESHOLD", 0.4)),
        max_message_length=_env_int("MAX_MESSAGE_LENGTH", 2000, minimum=1),
        max_profile_chars=_env_int("MAX_PROFILE_CHARS", 6000, minimum=0),
        max_prompt_chars=_env_int("MAX_PROMPT_CHARS", 16000, minimum=1),
        company_profile_path=_env("COMPANY_PROFILE_PATH"),
        rate_limit_rpm=_env_int("RATE_LIMIT_RPM", 10, minimum=1),
        log_level=_env("LOG_LEVEL", default="INFO").upper(),
    )


SETTINGS = load_settings()
