from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, List
import yaml

from groupwarden.configuration.ai_settings import AISettings
from groupwarden.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches contents of ``./config/app_config.yml``, exposes
    dictionary-like access helpers and typed shortcuts for every section the
    engine reads. Missing keys fall back to the documented defaults so a
    partial config file is always usable.
    """

    def __init__(self, config_path: Path, data: Dict[str, Any] | None = None) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        if data is not None:
            self._data = data
        else:
            self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, name: str) -> Dict[str, Any]:
        value = self._data.get(name, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def monitored_rooms(self) -> List[str]:
        """Display names of the rooms the engine governs."""
        rooms = self._data.get("monitored_rooms") or []
        return [str(r) for r in rooms] if isinstance(rooms, list) else []

    @property
    def admins(self) -> List[str]:
        """Phones that receive moderation alerts and may answer them."""
        admins = self._data.get("admins") or []
        return [str(a) for a in admins] if isinstance(admins, list) else []

    @property
    def verification_timeout_minutes(self) -> int:
        return int(self._section("verification").get("timeout_minutes", 5))

    @property
    def sweep_interval_seconds(self) -> float:
        return float(self._section("verification").get("sweep_interval_seconds", 60.0))

    @property
    def challenge_length(self) -> int:
        return int(self._section("verification").get("challenge_length", 5))

    @property
    def spam_settings(self) -> Dict[str, Any]:
        """Heuristic thresholds; see ``SpamThresholds`` for the keys."""
        return self._section("spam")

    @property
    def media_frame_count(self) -> int:
        return int(self._section("media").get("frame_count", 4))

    @property
    def gif_frame_step(self) -> int:
        return int(self._section("media").get("gif_frame_step", 5))

    @property
    def ffmpeg_path(self) -> str:
        return str(self._section("media").get("ffmpeg_path", "ffmpeg"))

    @property
    def ffprobe_path(self) -> str:
        return str(self._section("media").get("ffprobe_path", "ffprobe"))

    @property
    def ai_settings(self) -> AISettings:
        return AISettings(self._section("ai_settings"))

    @property
    def database_path(self) -> Path:
        return Path(str(self._section("database").get("path", "./data/groupwarden.db"))).resolve()

    @property
    def transport_factory(self) -> str | None:
        """``"package.module:callable"`` returning a ``ChatTransport``."""
        value = self._section("transport").get("factory")
        return str(value) if value else None


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
