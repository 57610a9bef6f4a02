"""Per-user navigation state for the bot."""

from __future__ import annotations

from typing import Optional


class UserStateManager:
    def __init__(self) -> None:
        self._current_stack: dict[int, str] = {}
        self._receipt_index: dict[int, int] = {}

    def set_current_stack(self, user_id: int, stack_id: str, receipt_index: int = 0) -> None:
        self._current_stack[user_id] = stack_id
        self._receipt_index[user_id] = receipt_index

    def get_current_stack(self, user_id: int) -> Optional[str]:
        return self._current_stack.get(user_id)

    def set_receipt_index(self, user_id: int, index: int) -> None:
        self._receipt_index[user_id] = index

    def get_receipt_index(self, user_id: int) -> int:
        return self._receipt_index.get(user_id, 0)

    def clear_user(self, user_id: int) -> None:
        self._current_stack.pop(user_id, None)
        self._receipt_index.pop(user_id, None)


state = UserStateManager()
