#!/usr/bin/env python3
"""
Debug Logger for pigmix
Provides centralized logging for optimizer runs, hyperparameter search and batch generation
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional
import platform
from datetime import datetime, timedelta


_TRUTHY = {"1", "true", "yes", "on"}


class PigmixDebugLogger:
    """Centralized debug logger for pigmix"""

    _instance: Optional['PigmixDebugLogger'] = None
    _logger: Optional[logging.Logger] = None
    _log_file: Optional[Path] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize the debug logger"""
        # File output is opt-in; warnings always reach stderr
        self.file_logging_enabled = self._should_enable_file_logging()

        if self.file_logging_enabled:
            self._log_file = self._get_log_file_path()
            self._ensure_log_directory()

        self._setup_logger()

        if self.file_logging_enabled:
            self.info("=" * 60)
            self.info(f"pigmix Debug Logger initialized at {datetime.now()}")
            self.info(f"Platform: {platform.system()} {platform.release()}")
            self.info(f"Python: {sys.version}")
            self.info(f"Working directory: {Path.cwd()}")
            self.info("=" * 60)

    def _should_enable_file_logging(self) -> bool:
        """Check the PIGMIX_DEBUG environment variable"""
        return os.environ.get("PIGMIX_DEBUG", "").strip().lower() in _TRUTHY

    def _get_user_config_dir(self) -> Path:
        """Get user configuration directory"""
        app_name = "PigMix"
        system = platform.system()

        if system == "Darwin":  # macOS
            return Path.home() / "Library" / "Application Support" / app_name
        elif system == "Windows":
            return Path.home() / "AppData" / "Local" / app_name
        elif system == "Linux":
            return Path.home() / ".config" / app_name
        else:
            return Path.cwd() / "debug_logs"

    def _get_log_file_path(self) -> Path:
        """Get the path for the debug log file"""
        log_dir = self._get_user_config_dir() / "logs"
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return log_dir / f"pigmix_debug_{timestamp}.log"

    def _ensure_log_directory(self):
        """Ensure the log directory exists and cleanup old logs"""
        if not self._log_file:
            return
        try:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Warning: Could not create log directory: {e}", file=sys.stderr)
            self._log_file = None
            return
        self._cleanup_old_logs()

    def _cleanup_old_logs(self):
        """Remove log files older than 30 days"""
        log_dir = self._log_file.parent
        cutoff_date = datetime.now() - timedelta(days=30)

        deleted_count = 0
        for log_file in log_dir.glob("pigmix_debug_*.log"):
            try:
                file_mtime = datetime.fromtimestamp(log_file.stat().st_mtime)
                if file_mtime < cutoff_date:
                    log_file.unlink()
                    deleted_count += 1
            except (OSError, ValueError):
                continue

        if deleted_count > 0:
            print(f"Debug logger: Cleaned up {deleted_count} old log files (older than 30 days)",
                  file=sys.stderr)

    def _setup_logger(self):
        """Set up the logger with file and console handlers"""
        self._logger = logging.getLogger('pigmix_debug')
        self._logger.setLevel(logging.DEBUG)
        self._logger.handlers.clear()

        formatter = logging.Formatter(
            '%(asctime)s.%(msecs)03d [%(levelname)8s] %(name)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        if self._log_file:
            try:
                file_handler = logging.FileHandler(self._log_file, encoding='utf-8')
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(formatter)
                self._logger.addHandler(file_handler)
            except OSError as e:
                print(f"Warning: Could not set up file logging: {e}", file=sys.stderr)

        # Console handler (WARNING and above)
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        self._logger.addHandler(console_handler)

        self._logger.propagate = False

    @staticmethod
    def _format(message: str, module: Optional[str]) -> str:
        module_prefix = f"[{module}] " if module else ""
        return f"{module_prefix}{message}"

    def debug(self, message: str, module: Optional[str] = None):
        """Log debug message"""
        self._logger.debug(self._format(message, module), stacklevel=3)

    def info(self, message: str, module: Optional[str] = None):
        """Log info message"""
        self._logger.info(self._format(message, module), stacklevel=3)

    def warning(self, message: str, module: Optional[str] = None):
        """Log warning message"""
        self._logger.warning(self._format(message, module), stacklevel=3)

    def error(self, message: str, module: Optional[str] = None):
        """Log error message"""
        self._logger.error(self._format(message, module), stacklevel=3)

    def log_path_search(self, description: str, paths: list, found_path: Optional[str] = None,
                        module: Optional[str] = None):
        """Log path search details"""
        self.info(description, module)
        for i, path in enumerate(paths, 1):
            exists = Path(path).exists() if path else False
            status = "EXISTS" if exists else "missing"
            self.debug(f"  [{i}] {path} - {status}", module)

        if found_path:
            self.info(f"  -> RESOLVED: {found_path}", module)
        else:
            self.warning("  -> NO PATH FOUND", module)

    def get_log_file_path(self) -> Optional[Path]:
        """Get the current log file path"""
        return self._log_file

    def is_enabled(self) -> bool:
        """Check if file logging is enabled"""
        return self.file_logging_enabled


# Global debug logger instance
debug_logger = PigmixDebugLogger()

# Convenience functions
def debug(message: str, module: Optional[str] = None):
    """Log debug message"""
    debug_logger.debug(message, module)

def info(message: str, module: Optional[str] = None):
    """Log info message"""
    debug_logger.info(message, module)

def warning(message: str, module: Optional[str] = None):
    """Log warning message"""
    debug_logger.warning(message, module)

def error(message: str, module: Optional[str] = None):
    """Log error message"""
    debug_logger.error(message, module)

def log_path_search(description: str, paths: list, found_path: Optional[str] = None,
                    module: Optional[str] = None):
    """Log path search details"""
    debug_logger.log_path_search(description, paths, found_path, module)

def is_debug_enabled() -> bool:
    """Check if file logging is enabled"""
    return debug_logger.is_enabled()

def get_log_file_path() -> Optional[Path]:
    """Get the current log file path"""
    return debug_logger.get_log_file_path()
