"""
Liveness classification for stop events.

The host runtime fires its stop hook on any pause, including the
"Pondering…" / "(thinking)" pauses in the middle of a long turn. For
heavy-task roles (dev, qa) the transcript tail is checked for those status
markers before anything is forwarded to the gateway.
"""

import re
from pathlib import Path
from typing import Optional, Protocol, Union

from orchestrix.roles import is_heavy_task_role

DEFAULT_TAIL_CHARS = 500

# Any word ending in "ing" followed by "..." or "…"
# e.g. "Pondering...", "Reading…", "Writing...", "Ideating…"
WORKING_PATTERN = re.compile(r'[A-Za-z]+ing(\.\.\.|…)')

# In-flight API call indicator, e.g. "(thinking)"
THINKING_PATTERN = re.compile(r'thinking\)')


class LivenessClassifier(Protocol):
    def __call__(self, text: str) -> bool: ...


class TranscriptPatternClassifier:
    """Default heuristic: status-line patterns in the transcript tail."""

    def __init__(self, tail_chars: int = DEFAULT_TAIL_CHARS):
        self.tail_chars = tail_chars
        self.last_reason: Optional[str] = None

    def __call__(self, text: str) -> bool:
        self.last_reason = None
        tail = text[-self.tail_chars:] if text else ''
        if WORKING_PATTERN.search(tail):
            self.last_reason = "*ing... pattern found"
            return True
        if THINKING_PATTERN.search(tail):
            self.last_reason = "thinking pattern found"
            return True
        return False


def is_still_working(
    role: str,
    transcript_tail: Optional[str],
    classifier: Optional[LivenessClassifier] = None,
) -> bool:
    """
    Decide whether an agent is still composing its turn.

    Only heavy-task roles are gated. A missing transcript counts as
    finished, so a real completion is never silently dropped.

    Args:
        role: Canonical role id
        transcript_tail: Tail of the transcript, or None if unavailable
        classifier: Text classifier (defaults to TranscriptPatternClassifier)

    Returns:
        True if the agent appears to be mid-turn
    """
    if not is_heavy_task_role(role):
        return False
    if not transcript_tail:
        return False
    if classifier is None:
        classifier = TranscriptPatternClassifier()
    return bool(classifier(transcript_tail))


def read_transcript_tail(
    transcript_path: Union[str, Path, None],
    chars: int = DEFAULT_TAIL_CHARS,
) -> Optional[str]:
    """
    Read the last characters of a transcript file.

    Returns:
        Tail text, or None if the path is missing or unreadable
    """
    if not transcript_path:
        return None

    path = Path(transcript_path)
    if not path.is_file():
        return None

    try:
        with open(path, 'rb') as f:
            f.seek(0, 2)
            size = f.tell()
            # UTF-8 is at most 4 bytes per character
            f.seek(max(0, size - chars * 4))
            data = f.read()
    except OSError:
        return None

    return data.decode('utf-8', errors='replace')[-chars:]
