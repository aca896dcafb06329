"""Orchestrix: tmux multi-agent workspace bootstrap and stop-hook relay."""

__version__ = "0.3.0"
