"""Command palette state and the fixed command table."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.models import Folder

COMMANDS: tuple[tuple[str, str], ...] = (
    ("inbox", "Go to Inbox"),
    ("sent", "Go to Sent"),
    ("drafts", "Go to Drafts"),
    ("trash", "Go to Trash"),
    ("archive", "Go to Archive"),
    ("refresh", "Reload the current folder"),
    ("help", "Show keyboard shortcuts"),
    ("quit", "Exit the client"),
)

ALIASES = {"q": "quit", "r": "refresh"}

FOLDER_COMMANDS = {
    "inbox": Folder.INBOX,
    "sent": Folder.SENT,
    "drafts": Folder.DRAFTS,
    "trash": Folder.TRASH,
    "archive": Folder.ARCHIVE,
}


@dataclass(slots=True)
class CommandState:
    """Typed palette input and the suggestions it narrows to."""

    input: str = ""
    suggestions: list[str] = field(default_factory=list)
    selected: int = 0

    def __post_init__(self) -> None:
        self.update_suggestions()

    def update_suggestions(self) -> None:
        typed = self.input.strip().lower()
        self.suggestions = [name for name, _ in COMMANDS if name.startswith(typed)]
        self.selected = 0

    def push(self, char: str) -> None:
        self.input += char
        self.update_suggestions()

    def pop(self) -> None:
        self.input = self.input[:-1]
        self.update_suggestions()

    def select_next(self) -> None:
        if self.suggestions:
            self.selected = (self.selected + 1) % len(self.suggestions)

    def select_previous(self) -> None:
        if self.suggestions:
            self.selected = (self.selected - 1) % len(self.suggestions)

    def resolve(self) -> str:
        """Return the command Enter should run."""
        if self.suggestions:
            return self.suggestions[self.selected]
        typed = self.input.strip().lower()
        return ALIASES.get(typed, typed)


def describe(command: str) -> str:
    return dict(COMMANDS).get(command, "")


__all__ = [
    "ALIASES",
    "COMMANDS",
    "CommandState",
    "FOLDER_COMMANDS",
    "describe",
]
