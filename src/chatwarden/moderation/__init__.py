"""
Moderation decision engine for chatwarden.

This package holds every state machine and time-window algorithm:

- **clock.py**: ``ClockSource`` protocol with monotonic and manual clocks.

- **sliding_window.py**: Generic keyed tracker that records timestamped
  events and counts the ones inside a trailing window, pruning on read.

- **spam_detector.py** / **raid_detector.py**: Identical-message bursts per
  user and member-join bursts across the whole community.

- **content_policy.py**: Case-insensitive blocked-term matching and the user
  blocklist.

- **warning_engine.py**: Per-user warning counters and the
  DELETE / WARN / TIMEOUT tier table.

- **cooldown_gate.py**: Per-user command cooldowns, bypassed for privileged
  callers.

- **orchestrator.py**: Composes the above into one ``ModerationDecision`` per
  inbound event and exposes the manual moderator operations.

- **errors.py**: Exception hierarchy rooted at ``ModerationError``.
"""
