"""
Configuration management for chatwarden.

- **app_configuration.py**: YAML configuration loader guarded by fcntl file
  locks. Falls back to an empty mapping on missing or malformed files and
  exposes the moderation policy and service/console tuning knobs.

- **policy_settings.py**: Immutable ``PolicySettings`` snapshot holding the
  spam, raid, warning and cooldown thresholds plus the blocked term and user
  lists. Validates every value and produces updated copies for the live
  ``config`` command.
"""
