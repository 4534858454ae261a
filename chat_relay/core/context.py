from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from chat_relay.core.content import DEFAULT_COMPANY_PROFILE
from chat_relay.core.session_store import Message, Role

logger = logging.getLogger(__name__)

_ELLIPSIS = "..."


@dataclass(frozen=True)
class PromptLimits:
    max_message_chars: int = 2000
    max_profile_chars: int = 6000
    max_total_chars: int = 16000


def load_company_profile(path: str | None) -> str:
    if not path:
        return DEFAULT_COMPANY_PROFILE
    target = Path(path)
    try:
        text = target.read_text(encoding="utf-8").strip()
    except OSError as exc:
        logger.warning("company profile unavailable path=%s error=%s; using built-in default", target, exc)
        return DEFAULT_COMPANY_PROFILE
    if not text:
        logger.warning("company profile empty path=%s; using built-in default", target)
        return DEFAULT_COMPANY_PROFILE
    logger.info("company profile loaded path=%s chars=%s", target, len(text))
    return text


def _truncate(text: str, limit: int) -> str:
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    if limit <= len(_ELLIPSIS):
        return text[:limit]
    return text[: limit - len(_ELLIPSIS)].rstrip() + _ELLIPSIS


def _size(items: list[dict[str, str]]) -> int:
    return sum(len(item["content"]) for item in items)


def build_prompt(
    persona: str,
    company_profile: str,
    history: Sequence[Message],
    new_message: str,
    limits: PromptLimits = PromptLimits(),
) -> list[dict[str, str]]:
    """Assemble the outbound message list.

    Order is persona, company profile, history (oldest first), then the new
    user message. When the assembled text exceeds ``max_total_chars`` the
    oldest history turns are dropped first, then the company profile is
    shortened. The persona and the new message (already capped at
    ``max_message_chars``) are always sent whole. The stored history is
    untouched.
    """
    persona_text = persona.strip()
    profile_text = _truncate((company_profile or "").strip() or DEFAULT_COMPANY_PROFILE, limits.max_profile_chars)
    tail = {"role": Role.USER.value, "content": _truncate(new_message, limits.max_message_chars)}
    turns = [
        {"role": message.role.value, "content": _truncate(message.content, limits.max_message_chars)}
        for message in history
        if message.content
    ]

    budget = limits.max_total_chars - len(persona_text) - len(tail["content"])
    while turns and len(profile_text) + _size(turns) > budget:
        turns.pop(0)
    if len(profile_text) > budget:
        profile_text = _truncate(profile_text, budget)

    head = [
        {"role": Role.SYSTEM.value, "content": persona_text},
        {"role": Role.SYSTEM.value, "content": profile_text},
    ]
    head = [item for item in head if item["content"]]
    return [*head, *turns, tail]
