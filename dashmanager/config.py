import os
from dataclasses import dataclass
from urllib.parse import urlsplit

from .errors import ConfigurationError

@dataclass(frozen=True)
class Settings:
    supabase_url: str = ""
    supabase_key: str = ""
    # Optional account used to obtain a user session instead of the anon role
    supabase_email: str = ""
    supabase_password: str = ""
    data_path: str = "dashmanager_data.json"
    # Per-collection cap for the local snapshot
    max_entities: int = 100
    timeout_seconds: float = 10.0

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

def _env_number(name: str, default, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        return default

def load_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL", "").strip().rstrip("/"),
        supabase_key=os.getenv("SUPABASE_ANON_KEY", "").strip(),
        supabase_email=os.getenv("SUPABASE_EMAIL", "").strip(),
        supabase_password=os.getenv("SUPABASE_PASSWORD", ""),
        data_path=os.getenv("DASHMANAGER_DATA_PATH", "").strip() or "dashmanager_data.json",
        max_entities=max(1, _env_number("DASHMANAGER_MAX_ENTITIES", 100, int)),
        timeout_seconds=max(1.0, _env_number("DASHMANAGER_TIMEOUT", 10.0, float)),
    )

def validate_settings(settings: Settings) -> None:
    """Raise :class:`ConfigurationError` for half-configured or malformed credentials."""
    if settings.supabase_url and not settings.supabase_key:
        raise ConfigurationError(
            "SUPABASE_ANON_KEY is not set. Export it together with SUPABASE_URL."
        )
    if settings.supabase_key and not settings.supabase_url:
        raise ConfigurationError(
            "SUPABASE_URL is not set. Export it together with SUPABASE_ANON_KEY."
        )
    if settings.supabase_url:
        parts = urlsplit(settings.supabase_url)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ConfigurationError(
                f"Invalid SUPABASE_URL format: {settings.supabase_url!r}"
            )
