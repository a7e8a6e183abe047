"""Side-effect requests handed from the state machine to the session driver.

Handlers return ``None`` when a key needs no external work.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.models import Folder


@dataclass(frozen=True, slots=True)
class Refresh:
    pass


@dataclass(frozen=True, slots=True)
class ChangeFolder:
    folder: Folder


@dataclass(frozen=True, slots=True)
class SendEmail:
    pass


@dataclass(frozen=True, slots=True)
class SaveDraft:
    pass


@dataclass(frozen=True, slots=True)
class EditDraft:
    pass


@dataclass(frozen=True, slots=True)
class ArchiveEmail:
    pass


@dataclass(frozen=True, slots=True)
class DeleteEmail:
    pass


@dataclass(frozen=True, slots=True)
class MarkAsRead:
    uid: int


@dataclass(frozen=True, slots=True)
class FetchThread:
    pass


@dataclass(frozen=True, slots=True)
class RemindEmail:
    uid: int
    duration_text: str


Action = (
    Refresh
    | ChangeFolder
    | SendEmail
    | SaveDraft
    | EditDraft
    | ArchiveEmail
    | DeleteEmail
    | MarkAsRead
    | FetchThread
    | RemindEmail
)

__all__ = [
    "Action",
    "ArchiveEmail",
    "ChangeFolder",
    "DeleteEmail",
    "EditDraft",
    "FetchThread",
    "MarkAsRead",
    "Refresh",
    "RemindEmail",
    "SaveDraft",
    "SendEmail",
]
