"""Session registry tests."""

import pytest

from memory.session_registry import SessionNotFoundError, SessionRegistry


class RecordingOrchestrator:
    def __init__(self) -> None:
        self.torn_down = False

    def teardown(self) -> None:
        self.torn_down = True


def test_each_session_gets_its_own_orchestrator() -> None:
    registry = SessionRegistry(RecordingOrchestrator)

    first = registry.create("owner-1", metadata={"client": "web"})
    second = registry.create("owner-1")

    assert first.session_id != second.session_id
    assert first.orchestrator is not second.orchestrator
    assert registry.get(first.session_id) is first
    assert first.session_id in registry
    assert len(registry) == 2


def test_close_tears_down_and_forgets() -> None:
    registry = SessionRegistry(RecordingOrchestrator)
    session = registry.create("owner-1")

    assert registry.close(session.session_id) is True
    assert session.orchestrator.torn_down
    assert registry.close(session.session_id) is False
    with pytest.raises(SessionNotFoundError):
        registry.get(session.session_id)


def test_close_all_tears_down_every_session() -> None:
    registry = SessionRegistry(RecordingOrchestrator)
    sessions = [registry.create(f"owner-{index}") for index in range(3)]

    registry.close_all()

    assert len(registry) == 0
    assert all(session.orchestrator.torn_down for session in sessions)
