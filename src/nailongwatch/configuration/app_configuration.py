from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from nailongwatch.configuration.settings import DetectionSettings, ModerationSettings
from nailongwatch.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The mapping is read once on construction (and again on :meth:`reload`).
    Detection and moderation knobs are exposed through
    :class:`DetectionSettings` and :class:`ModerationSettings`; a missing or
    malformed file leaves every knob at its default.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found; using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; using defaults.", self.config_path)
            return {}
        return data

    def _section(self, key: str) -> Dict[str, Any]:
        section = self._data.get(key, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file and return the freshly loaded mapping."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def data_dir(self) -> Path:
        """Directory holding whitelist.json, user_info.json and ``tmp/``."""
        return Path(str(self._data.get("data_dir") or "data"))

    @property
    def tmp_dir(self) -> Path:
        return self.data_dir / "tmp"

    @property
    def detection_settings(self) -> DetectionSettings:
        return DetectionSettings(self._section("detection"))

    @property
    def moderation_settings(self) -> ModerationSettings:
        return ModerationSettings(self._section("moderation"))

    @property
    def shutdown_sweep_timeout(self) -> float:
        """Upper bound in seconds for the temp-dir sweep run at shutdown."""
        return float(self._section("artifacts").get("shutdown_sweep_timeout", 10.0))
