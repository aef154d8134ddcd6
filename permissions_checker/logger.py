"""
Structured JSON-lines logger for the Permissions Checker.

Every entry is a single JSON object carrying a timestamp, level, session ID,
component and event name, so a run can be reconstructed from the log file
alone. Output goes to a file when a log directory is configured and is
echoed to stderr when console output is on (verbose mode).

Usage:
    from permissions_checker.logger import get_logger

    logger = get_logger()
    logger.info("state_machine", "folder_registered", {"path": "./data"})
    logger.warn("state_machine", "folder_missing", {"path": "./gone"})

    with logger.span("state_machine", "unlock_all") as span:
        result = machine.unlock_all()
        span.set_data({"applied": len(result.applied)})
"""

import json
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Generator, Optional, TextIO


class LogLevel(IntEnum):
    """Log level enumeration."""
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40

    @classmethod
    def from_string(cls, level_str: str) -> "LogLevel":
        """Parse string to LogLevel, defaulting to INFO."""
        mapping = {
            "TRACE": cls.TRACE,
            "DEBUG": cls.DEBUG,
            "INFO": cls.INFO,
            "WARN": cls.WARN,
            "WARNING": cls.WARN,
            "ERROR": cls.ERROR,
        }
        return mapping.get((level_str or "").upper(), cls.INFO)


class LogSpan:
    """Context manager for timed operations."""

    def __init__(
        self,
        logger: "StructuredLogger",
        level: LogLevel,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
    ):
        self.logger = logger
        self.level = level
        self.component = component
        self.event = event
        self.data = data or {}
        self.start_time: Optional[float] = None

    def __enter__(self) -> "LogSpan":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None:
            self.data["error"] = str(exc_val)
            self.data["error_type"] = exc_type.__name__
            self.logger._log(
                LogLevel.ERROR,
                self.component,
                f"{self.event}_error",
                self.data,
                duration_ms=duration_ms,
            )
        else:
            self.logger._log(
                self.level,
                self.component,
                f"{self.event}_complete",
                self.data,
                duration_ms=duration_ms,
            )

        return False  # Don't suppress exceptions

    def set_data(self, data: Dict[str, Any]) -> None:
        """Update span data before completion."""
        self.data.update(data)


class StructuredLogger:
    """Thread-safe structured JSON-lines logger."""

    def __init__(self):
        self._lock = threading.RLock()
        self._session_id: str = self._generate_session_id()
        self._level: LogLevel = LogLevel.INFO
        self._enabled: bool = True
        self._log_directory: Optional[Path] = None
        self._file_handle: Optional[TextIO] = None
        self._console_output: bool = False
        self._console_stream: Optional[TextIO] = None

    def _generate_session_id(self) -> str:
        """Generate unique session identifier."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_part = format(int(time.time() * 1000000) % 65536, "04X")
        return f"{timestamp}_{random_part}"

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def level(self) -> LogLevel:
        return self._level

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def log_path(self) -> Optional[Path]:
        """Path of the current log file, or None when file output is off."""
        if self._log_directory is None:
            return None
        return self._log_directory / f"permissions_checker_{self._session_id}.jsonl"

    def set_console_output(self, enabled: bool, stream: Optional[TextIO] = None) -> None:
        """Enable/disable echoing entries to stderr (or the given stream)."""
        self._console_output = enabled
        self._console_stream = stream

    def configure(
        self,
        enabled: bool = True,
        level: str = "INFO",
        log_directory: Optional[str] = None,
        console_output: bool = False,
        session_id: Optional[str] = None,
    ) -> None:
        """Configure logger from settings."""
        with self._lock:
            self._enabled = enabled
            self._level = LogLevel.from_string(level)
            self._console_output = console_output
            self._log_directory = Path(log_directory) if log_directory else None
            if session_id:
                self._session_id = session_id
            self._close_file()

    def error(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.ERROR, component, event, data)

    def warn(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.WARN, component, event, data)

    def info(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, component, event, data)

    def debug(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, component, event, data)

    @contextmanager
    def span(
        self,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
        level: LogLevel = LogLevel.INFO,
    ) -> Generator[LogSpan, None, None]:
        """Create a timed span for an operation.

        Usage:
            with logger.span("cli", "command") as span:
                run()
                span.set_data({"ok": True})
        """
        span_obj = LogSpan(self, level, component, event, data)
        with span_obj:
            yield span_obj

    def close(self) -> None:
        """Close log file."""
        with self._lock:
            self._close_file()

    def _log(
        self,
        level: LogLevel,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Core logging method. Never raises."""
        if not self._enabled or level < self._level:
            return

        try:
            entry = self._create_entry(level, component, event, data, duration_ms)
            json_str = json.dumps(entry, default=str)

            if self._console_output:
                stream = self._console_stream or sys.stderr
                print(f"[{level.name}] {component}.{event}: {json_str}", file=stream)

            self._write_to_file(json_str)

        except Exception as e:
            if self._console_output:
                print(f"Logger error: {e}", file=sys.stderr)

    def _create_entry(
        self,
        level: LogLevel,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Create structured log entry."""
        entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": level.name,
            "session_id": self._session_id,
            "component": component,
            "event": event,
        }

        if data:
            entry["data"] = self._sanitize_data(data)

        if duration_ms is not None:
            entry["duration_ms"] = round(duration_ms, 3)

        return entry

    def _sanitize_data(self, data: Any) -> Any:
        """Sanitize data for JSON encoding."""
        if isinstance(data, dict):
            return {k: self._sanitize_data(v) for k, v in data.items()}
        elif isinstance(data, (list, tuple)):
            return [self._sanitize_data(v) for v in data]
        elif isinstance(data, (str, int, float, bool, type(None))):
            return data
        elif isinstance(data, Exception):
            return {"type": type(data).__name__, "message": str(data)}
        return str(data)

    def _write_to_file(self, json_str: str) -> None:
        """Append JSON string to the log file, if one is configured."""
        with self._lock:
            if self._log_directory is None:
                return

            if self._file_handle is None:
                self._open_file()
                if self._file_handle is None:
                    return

            self._file_handle.write(json_str + "\n")
            self._file_handle.flush()

    def _open_file(self) -> None:
        """Open log file for writing."""
        log_path = self.log_path
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_path, "a", encoding="utf-8")
        except OSError as e:
            # Fall back to console-only logging
            self._log_directory = None
            if self._console_output:
                print(f"Failed to open log file {log_path}: {e}", file=sys.stderr)

    def _close_file(self) -> None:
        if self._file_handle:
            try:
                self._file_handle.close()
            except OSError:
                pass
            self._file_handle = None


# Module-level singleton instance
_logger_instance: Optional[StructuredLogger] = None
_logger_lock = threading.Lock()


def get_logger() -> StructuredLogger:
    """Get the global logger instance."""
    global _logger_instance
    with _logger_lock:
        if _logger_instance is None:
            _logger_instance = StructuredLogger()
        return _logger_instance


def configure_logger(
    enabled: bool = True,
    level: str = "INFO",
    log_directory: Optional[str] = None,
    console_output: bool = False,
    session_id: Optional[str] = None,
) -> None:
    """Configure the global logger."""
    get_logger().configure(
        enabled=enabled,
        level=level,
        log_directory=log_directory,
        console_output=console_output,
        session_id=session_id,
    )
