"""Decoding of ItemIds and StreamContents/ItemContents payloads."""

import html
import json
import logging
from datetime import datetime, timezone

from .errors import PayloadError
from .models import Enclosure, Message
from .providers import STATE_IMPORTANT, STATE_READ
from .tree import TreeNode

logger = logging.getLogger(__name__)


def _object(payload: object) -> dict:
    if not isinstance(payload, dict):
        raise PayloadError("Expected a JSON object in stream response")
    return payload


def _list(payload: dict, key: str) -> list:
    entries = payload.get(key) or []
    if not isinstance(entries, list):
        raise PayloadError(f"'{key}' is not a list")
    return entries


def _continuation(payload: dict) -> str:
    continuation = payload.get("continuation") or ""
    return continuation if isinstance(continuation, str) else str(continuation)


def decode_item_ids(payload: object) -> tuple[list[str], str]:
    """Return item ids of one ItemIds page and the next continuation."""
    data = _object(payload)
    refs = _list(data, "itemRefs")
    ids = [str(ref.get("id", "")) for ref in refs if isinstance(ref, dict)]
    return ids, _continuation(data)


def decode_stream_contents(
    payload: object,
    stream_id: str = "",
    labels: list[TreeNode] | None = None,
) -> tuple[list[Message], str]:
    """Return messages of one contents page and the next continuation.

    When ``stream_id`` is empty each message is attributed to the stream
    named in its ``origin``. ``labels`` are the live label nodes that
    label assignments are resolved against.
    """
    data = _object(payload)
    labels_by_id = {label.custom_id: label for label in labels or []}
    messages = []

    for item in _list(data, "items"):
        if not isinstance(item, dict):
            logger.warning("Skipping malformed item in stream %s", stream_id or "<ids>")
            continue
        try:
            messages.append(_decode_item(item, stream_id, labels_by_id))
        except (AttributeError, TypeError, ValueError, OverflowError) as e:
            logger.warning("Failed to decode item %s: %s", item.get("id"), e)

    return messages, _continuation(data)


def _decode_item(item: dict, stream_id: str, labels_by_id: dict[str, TreeNode]) -> Message:
    message = Message(
        custom_id=item.get("id", ""),
        feed_id=stream_id or (item.get("origin") or {}).get("streamId", ""),
        title=html.unescape(item.get("title") or ""),
        author=html.unescape(item.get("author") or ""),
        created=datetime.fromtimestamp(int(item.get("published") or 0), tz=timezone.utc),
        contents=(item.get("summary") or {}).get("content", ""),
        raw_contents=json.dumps(item, separators=(",", ":"), ensure_ascii=False),
    )

    for alternate in item.get("alternate") or []:
        mime = alternate.get("type", "")
        href = alternate.get("href", "")
        if not message.url and (not mime or mime == "text/html"):
            message.url = href
        else:
            message.enclosures.append(Enclosure(href, mime))

    for enclosure in item.get("enclosure") or []:
        message.enclosures.append(Enclosure(enclosure.get("href", ""), enclosure.get("type", "")))

    for category in item.get("categories") or []:
        if category.endswith(STATE_READ):
            message.is_read = True
        elif category.endswith(STATE_IMPORTANT):
            message.is_important = True
        elif "label" in category:
            label = labels_by_id.get(category)
            if label is not None:
                message.assigned_labels.append(label)

    if not message.title:
        message.title = message.url

    return message
