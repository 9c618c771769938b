import os


def _bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _list_env(name: str, default: str) -> tuple:
    raw = os.environ.get(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-estoque")

    STORE_MODE = os.environ.get("STORE_MODE", "memory").strip().lower()
    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_KEY = os.environ.get("SUPABASE_KEY")
    STORE_UNIQUE_MARKERS = _list_env("STORE_UNIQUE_MARKERS", "unique constraint,duplicate key")
    STORE_SEED_DEMO = _bool_env("STORE_SEED_DEMO", True)

    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
    SUGGESTION_TIMEOUT_SECONDS = _int_env("SUGGESTION_TIMEOUT_SECONDS", 30)

    LOG_JSON = _bool_env("LOG_JSON", True)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    def __init__(self):
        env = os.environ.get("FLASK_ENV", "development").lower()
        if env == "production" and self.STORE_MODE != "supabase":
            raise RuntimeError("STORE_MODE=memory nao e permitido em producao.")
        if env == "production" and not (self.SUPABASE_URL and self.SUPABASE_KEY):
            raise RuntimeError("SUPABASE_URL/SUPABASE_KEY nao definidas para ambiente de producao.")
        if env == "production" and self.SECRET_KEY == "dev-secret-estoque":
            raise RuntimeError("SECRET_KEY insegura para producao.")
