from __future__ import annotations

import pytest

from timed_exam.errors import InvalidNavigation
from timed_exam.models.session_state import NavState, SessionState
from timed_exam.services.navigation import NavigationGuard


def _guard(current: int, total: int = 4) -> NavigationGuard:
    state = SessionState(current_question_index=current, visited=set(range(current + 1)))
    return NavigationGuard(state, total)


def test_states_split_into_locked_current_unreachable():
    guard = _guard(2)
    assert guard.states() == [NavState.LOCKED, NavState.LOCKED, NavState.CURRENT, NavState.UNREACHABLE]
    assert guard.locked() == [0, 1]


def test_check_defaults_to_current():
    assert _guard(1).check(None) == 1


@pytest.mark.parametrize("target", [0, 2, 3, -1, 10])
def test_check_rejects_other_indices(target):
    with pytest.raises(InvalidNavigation):
        _guard(1).check(target)


def test_is_last_and_unanswered():
    state = SessionState(current_question_index=2, visited={0, 1, 2}, answers={0: "A", 2: "C"})
    guard = NavigationGuard(state, 3)
    assert guard.is_last
    assert guard.unanswered() == [1]
    assert guard.answered() == [0, 2]


def test_empty_exam_rejects_everything():
    with pytest.raises(InvalidNavigation):
        NavigationGuard(SessionState(), 0).check(None)
