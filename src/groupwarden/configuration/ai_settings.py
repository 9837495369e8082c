import os
from typing import Any, Dict


class AISettings:
    """Helper exposing typed accessors for the classification backend configuration.

    The API key falls back to the ``OPENAI_API_KEY`` environment variable so the
    secret can live in ``.env`` instead of the YAML file.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", True))

    @property
    def api_key(self) -> str | None:
        val = self.data.get("api_key") or os.getenv("OPENAI_API_KEY")
        return str(val) if val else None

    @property
    def base_url(self) -> str | None:
        val = self.data.get("base_url")
        return str(val) if val else None

    @property
    def moderation_model(self) -> str:
        return str(self.data.get("moderation_model") or "omni-moderation-latest")

    @property
    def chat_model(self) -> str:
        return str(self.data.get("chat_model") or "gpt-4o-mini")

    @property
    def temperature(self) -> float:
        return float(self.data.get("temperature", 0.1))

    @property
    def request_timeout(self) -> float:
        return float(self.data.get("request_timeout", 30.0))

    @property
    def is_configured(self) -> bool:
        """True when classification is enabled and a key is available."""
        return self.enabled and self.api_key is not None
