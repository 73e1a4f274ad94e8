"""
services/navigation.py

한 방향 진행 규칙(이전 문제로 돌아갈 수 없음)을 강제하는 내비게이션 가드.
"""

from typing import List, Optional

from timed_exam.errors import InvalidNavigation
from timed_exam.models.session_state import NavState, SessionState


class NavigationGuard:
    def __init__(self, state: SessionState, total: int):
        self._state = state
        self.total = total

    @property
    def current(self) -> int:
        return self._state.current_question_index

    @property
    def is_last(self) -> bool:
        return self.current >= self.total - 1

    def state_of(self, index: int) -> NavState:
        if index == self.current:
            return NavState.CURRENT
        if index < self.current and index in self._state.visited:
            return NavState.LOCKED
        return NavState.UNREACHABLE

    def states(self) -> List[NavState]:
        return [self.state_of(i) for i in range(self.total)]

    def answered(self) -> List[int]:
        return sorted(self._state.answers)

    def locked(self) -> List[int]:
        return [i for i in range(self.total) if self.state_of(i) == NavState.LOCKED]

    def unanswered(self) -> List[int]:
        return [i for i in range(self.total) if i not in self._state.answers]

    def check(self, index: Optional[int]) -> int:
        """
        명령 대상 인덱스를 확인한다. None이면 현재 문제로 간주.
        현재 문제가 아니거나 범위를 벗어나면 InvalidNavigation.
        """
        target = self.current if index is None else index
        if target != self.current or not (0 <= target < self.total):
            raise InvalidNavigation(target, self.current)
        return target
