"""
Administration External Integrations
=====================================

YAML platform defaults with watchdog hot-reload.
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from src.administration.domain import PlatformConfig
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for platform config file changes."""

    def __init__(self, config_manager: "PlatformConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("Platform config file changed", extra={"path": str(event.src_path)})
            self.config_manager.reload()


class PlatformConfigManager:
    """
    Thread-safe platform configuration manager with hot-reload support.

    Uses watchdog to monitor the YAML file and swap in a new snapshot
    without restarting the service. A file that fails to parse leaves the
    previous snapshot in place.
    """

    def __init__(self):
        self._config: Optional[PlatformConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> PlatformConfig:
        """Initial configuration load."""
        self._path = path
        self._config = self._load_from_file(path)
        return self._config

    def _load_from_file(self, path: Path) -> PlatformConfig:
        """Load and parse YAML config file."""
        if not path.exists():
            logger.warning("Platform config file not found, using defaults", extra={"path": str(path)})
            return PlatformConfig()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return PlatformConfig(**data)

    def reload(self) -> bool:
        """Reload configuration from file."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.error("Failed to reload platform config", extra={"error": str(e)})
            return False

        with self._lock:
            self._config = new_config
        logger.info("Platform configuration reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching configuration file for changes.

        Skips watching if the file doesn't exist or inotify is unavailable
        (e.g. some containers).
        """
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(
                "Config file doesn't exist, skipping file watch",
                extra={"path": str(self._path)}
            )
            return

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.parent),
                recursive=False
            )
            self._observer.start()
            logger.info("Started watching config file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning(
                "File watching not available, using static config",
                extra={"error": str(e)}
            )
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching configuration file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def config(self) -> PlatformConfig:
        """Get current configuration."""
        with self._lock:
            if self._config is None:
                raise RuntimeError("Platform configuration not loaded")
            return self._config
