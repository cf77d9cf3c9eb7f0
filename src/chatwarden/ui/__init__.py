"""
Operator-facing user interface.

- **console.py**: prompt_toolkit console for feeding messages, joins and
  commands into the moderation service and inspecting its state.
"""
