"""Linearize branching AI-dialogue message graphs.

A hosted dialogue keeps every edit and regeneration as a sibling branch; each
message points at its parent. Only the lineage ending at the current leaf is
the conversation the user actually sees.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from schemas.conversation import Message, SenderRole
from errors import ErrorKind
from .base import parse_timestamp

logger = logging.getLogger(__name__)


def construct_tree(
    chat_messages: Iterable[Dict[str, Any]],
    leaf_id: Optional[str],
    id_key: str = "uuid",
    parent_key: str = "parent_message_uuid"
) -> List[Dict[str, Any]]:
    """
    Return the root-to-leaf path ending at `leaf_id`, oldest first.

    The walk stops at the first message with no parent reference (the root is
    included) or whose parent is not in the set. An unknown leaf yields [].
    """
    index = {msg.get(id_key): msg for msg in chat_messages if msg.get(id_key)}

    current = index.get(leaf_id) if leaf_id else None
    if current is None:
        logger.warning(
            f"{ErrorKind.RECONSTRUCTION_EMPTY.value}: leaf {leaf_id!r} not among {len(index)} messages"
        )
        return []

    path: List[Dict[str, Any]] = []
    seen = set()

    while current is not None and current[id_key] not in seen:
        seen.add(current[id_key])
        path.append(current)
        parent_id = current.get(parent_key)
        if not parent_id:
            break
        current = index.get(parent_id)

    path.reverse()
    return path


def linearize_messages(messages: Iterable[Message], leaf_id: Optional[str]) -> List[Message]:
    """construct_tree for already-normalized Messages."""
    by_id = {m.id: m for m in messages}
    records = [{"uuid": m.id, "parent_message_uuid": m.parent_id} for m in by_id.values()]
    return [by_id[r["uuid"]] for r in construct_tree(records, leaf_id)]


def message_text(raw: Dict[str, Any]) -> str:
    """
    Assemble a message's text payload.

    A direct text field wins. Otherwise attachment text and text content blocks
    are joined by a blank line. The result may be "" but is never omitted.
    """
    text = raw.get("text")
    if text and text.strip():
        return text.strip()

    parts = []
    for attachment in raw.get("attachments") or []:
        extracted = attachment.get("extracted_content")
        if extracted:
            parts.append(extracted)

    for block in raw.get("content") or []:
        if block.get("type") == "text" and block.get("text"):
            parts.append(block["text"])

    return "\n\n".join(parts).strip()


def format_messages(path: List[Dict[str, Any]]) -> List[Message]:
    """Normalize a reconstructed path into Messages with human/assistant roles."""
    messages = []
    for raw in path:
        role = SenderRole.HUMAN if raw.get("sender") == "human" else SenderRole.ASSISTANT
        messages.append(Message(
            id=raw["uuid"],
            text=message_text(raw),
            sender=role.value,
            sender_role=role,
            timestamp=parse_timestamp(raw["created_at"]),
            parent_id=raw.get("parent_message_uuid")
        ))
    return messages
