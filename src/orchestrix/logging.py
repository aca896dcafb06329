"""Logging module for orchestrix with hybrid format.

Logs are written in hybrid format:
    YYYY-MM-DD HH:MM:SS LEVEL [command] Human message | {"json": "data"}

This provides both human readability (left side) and machine parseability (right side).
The stop hook never prints to the terminal, so this append-only file is the
only place its diagnostics end up.
"""
import json
import re
from datetime import datetime
from itertools import islice
from pathlib import Path
from typing import Any, Dict, List, Optional


class HookLogger:
    """Logger for orchestrix commands with hybrid format output.

    All entries are appended to a single file.
    Default location: /tmp/acp-stop-hook.log (see config.hook_log_file)
    """

    def __init__(self, log_file: Optional[Path] = None):
        """Initialize logger with log file.

        Args:
            log_file: Log file path. Defaults to the configured hook_log_file
        """
        if log_file is None:
            from orchestrix.config import get_hook_log_file
            log_file = get_hook_log_file()

        self.log_file = Path(log_file)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

    def _format_log_line(
        self,
        level: str,
        command: str,
        message: str,
        data: Dict[str, Any]
    ) -> str:
        """Format log line in hybrid format.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            command: Command name (stop-hook, start, etc.)
            message: Human-readable message
            data: Structured data as dict

        Returns:
            Formatted log line with newline
        """
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        # Pad level to 5 characters for alignment
        level_padded = level.ljust(5)

        json_str = json.dumps(data, ensure_ascii=False, default=str)
        return f"{timestamp} {level_padded} [{command}] {message} | {json_str}\n"

    def log_event(
        self,
        command: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        level: str = "INFO"
    ) -> None:
        """Log an event with hybrid format.

        Args:
            command: Command name (stop-hook, start, etc.)
            message: Human-readable message
            data: Structured data as dict
            level: Log level (DEBUG, INFO, WARNING, ERROR)
        """
        log_line = self._format_log_line(level, command, message, data or {})

        with open(self.log_file, "a") as f:
            f.write(log_line)

    def log_command_start(self, command: str, data: Dict[str, Any]) -> None:
        """Log command start event."""
        self.log_event(command, "========== triggered ==========", data, level="INFO")

    def log_command_complete(
        self,
        command: str,
        duration_ms: int,
        data: Dict[str, Any]
    ) -> None:
        """Log command completion event.

        Args:
            command: Command name
            duration_ms: Command duration in milliseconds
            data: Result data
        """
        outcome = data.get("outcome", "")
        message = f"========== complete ({duration_ms}ms) =========="
        if outcome:
            message = f"========== complete: {outcome} ({duration_ms}ms) =========="

        if "duration_ms" not in data:
            data = {**data, "duration_ms": duration_ms}

        self.log_event(command, message, data, level="INFO")

    def log_warning(self, command: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.log_event(command, message, data or {}, level="WARN")

    def log_error(
        self,
        command: str,
        message: str,
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log error event.

        Args:
            command: Command name
            message: Error message
            data: Error details
        """
        data = data or {}
        reason = data.get("reason", "")
        if reason:
            full_message = f"{message}: {reason}"
        else:
            full_message = message

        self.log_event(command, full_message, data, level="ERROR")

    def read_logs(
        self,
        limit: int = 50,
        command_filter: Optional[str] = None,
        level_filter: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Return parsed entries, newest first, optionally filtered by command or level."""
        if not self.log_file.exists():
            return []

        with open(self.log_file, 'r', errors='replace') as f:
            lines = f.readlines()

        entries = (_parse_log_line(line) for line in reversed(lines))
        matching = (
            entry for entry in entries
            if entry
            and (not command_filter or entry['command'] == command_filter)
            and (not level_filter or entry['level'] == level_filter)
        )
        return list(islice(matching, limit))


# ts LEVEL [command] message | {json}; the data part is the trailing JSON object
_LINE_PATTERN = re.compile(r'^(\S+ \S+) (\S+)\s+\[([^\]]*)\] (.*?) \| (\{.*\})$')


def _parse_log_line(line: str) -> Optional[Dict[str, Any]]:
    match = _LINE_PATTERN.match(line.rstrip('\n'))
    if not match:
        return None
    timestamp, level, command, message, json_part = match.groups()
    try:
        data = json.loads(json_part)
    except ValueError:
        return None
    return {
        'timestamp': timestamp,
        'level': level,
        'command': command,
        'message': message,
        'data': data,
    }
