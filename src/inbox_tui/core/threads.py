"""Conversation reconstruction from Message-ID, In-Reply-To and References."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from .interfaces import MessageParser, ThreadSource
from .models import Message

LOGGER = logging.getLogger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class HeaderMatch:
    """Match messages whose ``header`` equals ``value``."""

    value: str
    header: str = "Message-ID"


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Match messages satisfying either side."""

    left: HeaderMatch
    right: ThreadQuery


ThreadQuery = HeaderMatch | AnyOf


def iter_predicates(query: ThreadQuery) -> Iterator[HeaderMatch]:
    """Yield the leaf predicates of ``query`` from left to right."""
    node: ThreadQuery = query
    while isinstance(node, AnyOf):
        yield node.left
        node = node.right
    yield node


def collect_thread_ids(message: Message) -> list[str]:
    """Return references, then In-Reply-To, then the message's own id."""
    ids: list[str] = []
    for value in (*message.references, message.in_reply_to, message.message_id):
        if value and value not in ids:
            ids.append(value)
    return ids


def build_thread_query(ids: Sequence[str]) -> ThreadQuery | None:
    """Fold ``ids`` into a right-associated chain of disjunctions.

    ``[a, b, c]`` becomes ``AnyOf(a, AnyOf(b, c))``.
    """
    if not ids:
        return None
    query: ThreadQuery = HeaderMatch(ids[-1])
    for value in reversed(ids[:-1]):
        query = AnyOf(HeaderMatch(value), query)
    return query


def _sort_key(message: Message) -> datetime:
    return message.date or _EARLIEST


def reconstruct_thread(
    message: Message,
    source: ThreadSource,
    parser: MessageParser,
) -> list[Message]:
    """Return the conversation containing ``message``, oldest first.

    The result is never empty: without linking headers, or when the search
    finds nothing parsable, the original message is returned alone.
    """
    query = build_thread_query(collect_thread_ids(message))
    if query is None:
        return [message]

    candidates = source.search_thread(query)
    if not candidates:
        LOGGER.debug("No thread candidates found for UID %s", message.uid)
        return [message]

    thread: list[Message] = []
    for chunk in candidates:
        try:
            thread.append(parser.parse(chunk))
        except ValueError as exc:
            LOGGER.warning("Skipping unparsable thread member UID %s: %s", chunk.uid, exc)
    if not thread:
        return [message]

    thread.sort(key=_sort_key)
    return thread


__all__ = [
    "AnyOf",
    "HeaderMatch",
    "ThreadQuery",
    "build_thread_query",
    "collect_thread_ids",
    "iter_predicates",
    "reconstruct_thread",
]
