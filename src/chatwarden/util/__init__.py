"""
Utility functions and helpers for chatwarden.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Uses prompt_toolkit
  so log lines do not break the interactive console prompt.

- **duration.py**: Parses moderator-supplied durations (``60s``, ``5m``,
  ``1h``) into milliseconds and renders them back for log lines.
"""
