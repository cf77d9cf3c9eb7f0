"""
Pytest configuration and fixtures for chatwarden tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work without an editable install
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from chatwarden.configuration.policy_settings import PolicySettings  # noqa: E402
from chatwarden.moderation.clock import ManualClock  # noqa: E402
from chatwarden.moderation.orchestrator import ModerationOrchestrator  # noqa: E402


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(start_ms=1_000_000)


@pytest.fixture()
def policy() -> PolicySettings:
    return PolicySettings(
        spam_threshold=5,
        spam_time_frame_ms=5000,
        raid_threshold=10,
        raid_time_frame_ms=10000,
        warning_limit=3,
        command_cooldown_ms=5000,
        blocked_terms=("badWord1", "badWord2"),
    )


@pytest.fixture()
def orchestrator(policy: PolicySettings, clock: ManualClock) -> ModerationOrchestrator:
    return ModerationOrchestrator(policy, clock=clock)
