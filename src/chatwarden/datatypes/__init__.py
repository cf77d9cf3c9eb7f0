"""
Data types shared across chatwarden.

- **identity_datatypes.py**: ``UserID`` wrapper normalizing platform user ids.
- **event_datatypes.py**: Inbound ``MessageEvent``, ``JoinEvent`` and
  ``CommandInvocation`` plus the recorded ``Event``.
- **action_datatypes.py**: ``ActionType``, ``Tier``, ``ModerationDecision``
  and ``ActionOutcome``.
"""
