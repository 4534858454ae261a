from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from chat_relay.core.context import PromptLimits, build_prompt
from chat_relay.core.errors import ValidationError
from chat_relay.core.faq import FaqMatcher
from chat_relay.core.gateway import UpstreamGateway
from chat_relay.core.metrics import metrics
from chat_relay.core.session_store import Message, SessionStore

logger = logging.getLogger(__name__)

MAX_USER_ID_LENGTH = 128


@dataclass(frozen=True)
class ChatReply:
    reply: str
    source: str
    score: Optional[float] = None


class ChatOrchestrator:
    """Per-request control flow: validate, record, FAQ short-circuit, relay upstream."""

    def __init__(
        self,
        store: SessionStore,
        matcher: FaqMatcher,
        gateway: UpstreamGateway,
        persona: str,
        company_profile: str,
        history_window: int = 3,
        max_message_length: int = 2000,
        limits: Optional[PromptLimits] = None,
    ) -> None:
        self.store = store
        self.matcher = matcher
        self.gateway = gateway
        self.persona = persona
        self.company_profile = company_profile
        self.history_window = max(0, history_window)
        self.max_message_length = max_message_length
        self.limits = limits or PromptLimits(max_message_chars=max_message_length)

    def validate(self, message: Any, user_id: Any) -> tuple[str, str]:
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Mensaje inválido o demasiado largo")
        if len(message) > self.max_message_length:
            raise ValidationError("Mensaje inválido o demasiado largo")
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("userId es obligatorio")
        user_id = user_id.strip()
        if len(user_id) > MAX_USER_ID_LENGTH:
            raise ValidationError("userId es demasiado largo")
        return message, user_id

    async def handle(self, message: Any, user_id: Any, model: Optional[str] = None) -> ChatReply:
        message, user_id = self.validate(message, user_id)
        metrics.inc("chat_requests_total")

        position = self.store.append_message(user_id, Message.user(message))

        match = self.matcher.lookup(message)
        if match is not None:
            answer = match.entry.answer
            self.store.append_message(user_id, Message.assistant(answer))
            metrics.inc("chat_faq_hits_total")
            logger.info("faq hit user=%s score=%.3f question=%s", user_id, match.score, match.entry.question)
            return ChatReply(reply=answer, source="faq", score=match.score)

        history = self.store.recent_history(user_id, self.history_window, end=position)
        prompt = build_prompt(self.persona, self.company_profile, history, message, self.limits)
        logger.info("relaying upstream user=%s history=%s prompt_messages=%s", user_id, len(history), len(prompt))
        reply = await self.gateway.complete(model, prompt)

        self.store.append_message(user_id, Message.assistant(reply))
        return ChatReply(reply=reply, source="upstream")
