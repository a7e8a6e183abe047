"""Logical message order, filtered views, and multi-selection.

The cursor always stores a *logical* index into ``messages``. Navigation
runs over the *visible* indices (search results and the importance filter
applied) and maps the outcome back to a logical index, so filtering never
detaches the highlight from the underlying list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..core.models import Message
from .fuzzy import FuzzyMatcher

LOGGER = logging.getLogger(__name__)


class ImportanceFilter(Enum):
    ALL = "all"
    IMPORTANT = "important"
    OTHER = "other"

    def next(self) -> ImportanceFilter:
        members = list(ImportanceFilter)
        return members[(members.index(self) + 1) % len(members)]

    def admits(self, message: Message) -> bool:
        if self is ImportanceFilter.IMPORTANT:
            return message.important
        if self is ImportanceFilter.OTHER:
            return not message.important
        return True


@dataclass(slots=True)
class SearchState:
    """Query text and the logical indices it matches."""

    query: str = ""
    results: list[int] = field(default_factory=list)
    selected: int = 0
    active: bool = False

    def highlighted(self) -> int | None:
        if 0 <= self.selected < len(self.results):
            return self.results[self.selected]
        return None


def search_text(message: Message) -> str:
    return f"{message.sender} {message.subject} {message.body}"


class MessageList:
    """Folder contents plus cursor, search and multi-select state."""

    def __init__(
        self,
        messages: Iterable[Message] = (),
        *,
        matcher: FuzzyMatcher | None = None,
    ) -> None:
        self.messages: list[Message] = []
        self.selected: int | None = None
        self.search = SearchState()
        self.multi_selected: set[int] = set()
        self.importance_filter = ImportanceFilter.ALL
        self._matcher = matcher or FuzzyMatcher()
        self.set_messages(messages)

    def __len__(self) -> int:
        return len(self.messages)

    # Contents ------------------------------------------------------------------
    def set_messages(self, messages: Iterable[Message]) -> None:
        """Replace the folder contents, keeping the cursor on the same message."""
        current = self.selected_message()
        self.messages = list(messages)
        present = {message.uid for message in self.messages}
        self.multi_selected &= present

        self.selected = 0 if self.messages else None
        if current is not None:
            index = self.index_of(current.uid)
            if index is not None:
                self.selected = index
        self._recompute_search()
        self._snap_to_visible()

    def index_of(self, uid: int) -> int | None:
        for index, message in enumerate(self.messages):
            if message.uid == uid:
                return index
        return None

    def selected_message(self) -> Message | None:
        if self.selected is None or not 0 <= self.selected < len(self.messages):
            return None
        return self.messages[self.selected]

    def remove_uids(self, uids: Iterable[int]) -> list[Message]:
        """Drop messages by UID, clamp the cursor, and clear multi-selection."""
        doomed = set(uids)
        removed = [message for message in self.messages if message.uid in doomed]
        if not removed:
            return []
        self.messages = [
            message for message in self.messages if message.uid not in doomed
        ]
        self.multi_selected.clear()
        if not self.messages:
            self.selected = None
        elif self.selected is None:
            self.selected = 0
        elif self.selected >= len(self.messages):
            self.selected = len(self.messages) - 1
        self._recompute_search()
        self._snap_to_visible()
        LOGGER.debug("Removed %d message(s) from the list", len(removed))
        return removed

    # Visible set and navigation --------------------------------------------------
    def visible_indices(self) -> list[int]:
        base: Sequence[int] = (
            self.search.results if self.search.active else range(len(self.messages))
        )
        return [
            index
            for index in base
            if self.importance_filter.admits(self.messages[index])
        ]

    def _visible_position(self, indices: Sequence[int]) -> int | None:
        if self.selected is None:
            return None
        try:
            return indices.index(self.selected)
        except ValueError:
            return None

    def select_next(self) -> None:
        indices = self.visible_indices()
        if not indices:
            return
        position = self._visible_position(indices)
        next_position = 0 if position is None else min(position + 1, len(indices) - 1)
        self.selected = indices[next_position]

    def select_previous(self) -> None:
        indices = self.visible_indices()
        if not indices:
            return
        position = self._visible_position(indices)
        previous_position = 0 if position is None else max(position - 1, 0)
        self.selected = indices[previous_position]

    def select_first(self) -> None:
        indices = self.visible_indices()
        if indices:
            self.selected = indices[0]

    def select_last(self) -> None:
        indices = self.visible_indices()
        if indices:
            self.selected = indices[-1]

    def _snap_to_visible(self) -> None:
        indices = self.visible_indices()
        if not indices:
            self.selected = None
            return
        if self.selected not in indices:
            self.selected = indices[0]

    # Multi-selection -------------------------------------------------------------
    def toggle_selection(self) -> None:
        message = self.selected_message()
        if message is None:
            return
        if message.uid in self.multi_selected:
            self.multi_selected.discard(message.uid)
        else:
            self.multi_selected.add(message.uid)

    def select_next_with_selection(self) -> None:
        self._extend_selection(self.select_next)

    def select_previous_with_selection(self) -> None:
        self._extend_selection(self.select_previous)

    def _extend_selection(self, move: Callable[[], None]) -> None:
        current = self.selected_message()
        if current is None:
            return
        self.multi_selected.add(current.uid)
        move()
        moved_to = self.selected_message()
        if moved_to is not None:
            self.multi_selected.add(moved_to.uid)

    def clear_selection(self) -> None:
        self.multi_selected.clear()

    def action_targets(self) -> list[Message]:
        """Return the multi-selection in list order, or the highlighted message."""
        if self.multi_selected:
            return [
                message
                for message in self.messages
                if message.uid in self.multi_selected
            ]
        message = self.selected_message()
        return [message] if message is not None else []

    # Search ----------------------------------------------------------------------
    def start_search(self) -> None:
        """Begin a fresh query; an empty query lists every message."""
        self.search = SearchState()
        self._recompute_search()

    def set_query(self, query: str) -> None:
        self.search.query = query
        self._recompute_search()

    def _recompute_search(self) -> None:
        query = self.search.query
        if not query:
            self.search.results = list(range(len(self.messages)))
        else:
            self.search.results = [
                index
                for index, message in enumerate(self.messages)
                if self._matcher.is_match(search_text(message), query)
            ]
        self.search.selected = 0

    def search_next(self) -> None:
        if self.search.results:
            self.search.selected = (self.search.selected + 1) % len(self.search.results)

    def search_previous(self) -> None:
        if self.search.results:
            self.search.selected = (self.search.selected - 1) % len(self.search.results)

    def accept_search(self) -> bool:
        """Filter the list by the current results and jump to the highlighted one."""
        index = self.search.highlighted()
        if index is None:
            return False
        self.selected = index
        self.search.active = True
        self._snap_to_visible()
        return True

    def cancel_search(self) -> None:
        self.search.active = False
        self._snap_to_visible()

    def clear_search_filter(self) -> None:
        self.search = SearchState()
        if self.selected is None and self.messages:
            self.selected = 0
        self._snap_to_visible()

    def cycle_importance_filter(self) -> ImportanceFilter:
        self.importance_filter = self.importance_filter.next()
        if self.selected is None and self.messages:
            self.selected = 0
        self._snap_to_visible()
        return self.importance_filter


__all__ = ["ImportanceFilter", "MessageList", "SearchState", "search_text"]
