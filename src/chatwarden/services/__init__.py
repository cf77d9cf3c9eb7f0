"""
Service layer wiring the moderation engine to the outside world.

- **moderation_service.py**: Async entry point for message, join and command
  events; serializes per user and runs the executor in background tasks.
- **command_dispatcher.py**: Registry of manual moderation commands (warn,
  unwarn, blacklist, timeout, config, ...).
- **action_executor.py**: Abstract executor the platform layer implements,
  plus a logging dry-run executor.
"""
