"""
chatwarden - moderation decision engine for real-time chat communities

chatwarden decides, for every inbound chat event, whether to delete, warn,
time out or reject, and signals raids to the integration layer. Platform
calls are left to an executor supplied by the caller.

Core Components:

- **Moderation engine** (``chatwarden.moderation``): sliding-window spam and
  raid detection, blocked-term and blocklist policy, warning escalation,
  command cooldowns, and the orchestrator composing them.

- **Services** (``chatwarden.services``): async service serializing events per
  user, the manual command dispatcher, and the executor interface.

- **Configuration** (``chatwarden.configuration``): YAML config loader and the
  validated policy snapshot.

- **Console** (``chatwarden.ui``): prompt_toolkit console for trying policies
  by hand.
"""
