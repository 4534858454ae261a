import asyncio
import json
import time

import httpx
import pytest

from chat_relay.core.content import DEFAULT_COMPANY_PROFILE, FAQS, PERSONA
from chat_relay.core.errors import UpstreamError, UpstreamTimeoutError, ValidationError
from chat_relay.core.faq import FaqMatcher
from chat_relay.core.gateway import UpstreamGateway
from chat_relay.core.orchestrator import ChatOrchestrator
from chat_relay.core.session_store import Role, SessionStore


class FakeGateway:
    def __init__(self, reply="¿Por qué el libro de matemáticas está triste? 😄", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, model, messages, deadline=None):
        self.calls.append({"model": model, "messages": list(messages)})
        if self.error is not None:
            raise self.error
        return self.reply


def _orchestrator(gateway=None, faqs=FAQS, store=None, history_window=3):
    return ChatOrchestrator(
        store=store or SessionStore(),
        matcher=FaqMatcher(faqs),
        gateway=gateway or FakeGateway(),
        persona=PERSONA,
        company_profile=DEFAULT_COMPANY_PROFILE,
        history_window=history_window,
    )


def _assistant_count(store, user_id):
    return sum(1 for m in store.recent_history(user_id, 10_000) if m.role is Role.ASSISTANT)


def test_faq_short_circuit_skips_upstream():
    gateway = FakeGateway()
    orchestrator = _orchestrator(gateway)

    result = asyncio.run(orchestrator.handle("¿qué es cistcor?", "u1"))

    assert result.reply == FAQS[0].answer
    assert result.source == "faq"
    assert gateway.calls == []
    history = orchestrator.store.recent_history("u1", 10)
    assert [m.role for m in history] == [Role.USER, Role.ASSISTANT]
    assert history[1].content == FAQS[0].answer


def test_unrelated_message_is_relayed_upstream_verbatim():
    gateway = FakeGateway(reply="Aquí va un chiste...")
    orchestrator = _orchestrator(gateway)

    result = asyncio.run(orchestrator.handle("cuéntame un chiste", "u1"))

    assert result.reply == "Aquí va un chiste..."
    assert result.source == "upstream"
    assert len(gateway.calls) == 1
    messages = gateway.calls[0]["messages"]
    assert messages[0] == {"role": "system", "content": PERSONA.strip()}
    assert messages[1] == {"role": "system", "content": DEFAULT_COMPANY_PROFILE}
    assert messages[-1] == {"role": "user", "content": "cuéntame un chiste"}
    assert len(messages) == 3
    history = orchestrator.store.recent_history("u1", 10)
    assert [(m.role, m.content) for m in history] == [
        (Role.USER, "cuéntame un chiste"),
        (Role.ASSISTANT, "Aquí va un chiste..."),
    ]


def test_requested_model_is_forwarded_to_gateway():
    gateway = FakeGateway()
    orchestrator = _orchestrator(gateway, faqs=())

    asyncio.run(orchestrator.handle("hola", "u1", model="llama"))

    assert gateway.calls[0]["model"] == "llama"


def test_history_window_uses_turns_preceding_the_new_message():
    gateway = FakeGateway(reply="r")
    orchestrator = _orchestrator(gateway, faqs=())

    for text in ("uno", "dos", "tres"):
        asyncio.run(orchestrator.handle(text, "u1"))
    stored_before = orchestrator.store.message_count("u1")

    asyncio.run(orchestrator.handle("cuatro", "u1"))

    messages = gateway.calls[-1]["messages"]
    turns = messages[2:-1]
    assert len(turns) == 3
    assert [t["content"] for t in turns] == ["r", "tres", "r"]
    assert messages[-1] == {"role": "user", "content": "cuatro"}
    assert orchestrator.store.message_count("u1") == stored_before + 2


def test_zero_history_window_sends_no_turns():
    gateway = FakeGateway(reply="r")
    orchestrator = _orchestrator(gateway, faqs=(), history_window=0)

    asyncio.run(orchestrator.handle("uno", "u1"))
    asyncio.run(orchestrator.handle("dos", "u1"))

    assert len(gateway.calls[-1]["messages"]) == 3


def test_oversized_message_is_rejected_without_creating_session():
    orchestrator = _orchestrator()

    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.handle("a" * 2001, "new-user"))

    assert "new-user" not in orchestrator.store


def test_message_at_limit_is_accepted():
    gateway = FakeGateway(reply="ok")
    orchestrator = _orchestrator(gateway, faqs=())

    result = asyncio.run(orchestrator.handle("a" * 2000, "u1"))

    assert result.reply == "ok"


@pytest.mark.parametrize("message", [None, "", "   ", 123, ["hola"]])
def test_invalid_messages_are_rejected(message):
    orchestrator = _orchestrator()

    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.handle(message, "u1"))

    assert len(orchestrator.store) == 0


@pytest.mark.parametrize("user_id", [None, "", "   ", 42, "x" * 129])
def test_invalid_user_ids_are_rejected(user_id):
    orchestrator = _orchestrator()

    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.handle("hola", user_id))

    assert len(orchestrator.store) == 0


def test_user_id_is_stripped():
    orchestrator = _orchestrator()

    asyncio.run(orchestrator.handle("¿qué es cistcor?", "  u1  "))

    assert "u1" in orchestrator.store


def test_upstream_failure_records_no_assistant_message():
    gateway = FakeGateway(error=UpstreamError(502, "bad gateway"))
    orchestrator = _orchestrator(gateway, faqs=())

    with pytest.raises(UpstreamError):
        asyncio.run(orchestrator.handle("hola", "u1"))

    assert orchestrator.store.message_count("u1") == 1
    assert _assistant_count(orchestrator.store, "u1") == 0


def test_slow_upstream_times_out_within_deadline_without_partial_append():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={"choices": [{"message": {"content": "late"}}]})

    async def _run(orchestrator):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            orchestrator.gateway = UpstreamGateway(
                url="http://upstream.test/v1/chat/completions",
                api_key="k",
                default_model="gemma",
                timeout_ms=100,
                client=client,
            )
            return await orchestrator.handle("cuéntame un chiste", "u1")

    orchestrator = _orchestrator()
    started = time.monotonic()
    with pytest.raises(UpstreamTimeoutError):
        asyncio.run(_run(orchestrator))

    assert time.monotonic() - started < 1.0
    assert _assistant_count(orchestrator.store, "u1") == 0
    assert orchestrator.store.message_count("u1") == 1


def test_disallowed_model_is_substituted_end_to_end():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "listo"}}]})

    async def _run(orchestrator):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            orchestrator.gateway = UpstreamGateway(
                url="http://upstream.test/v1/chat/completions",
                api_key="k",
                default_model="gemma",
                allowed_models=["gemma"],
                client=client,
            )
            return await orchestrator.handle("cuéntame un chiste", "u1", model="not-allowed")

    orchestrator = _orchestrator()
    result = asyncio.run(_run(orchestrator))

    assert result.reply == "listo"
    assert captured["body"]["model"] == "gemma"


def test_concurrent_requests_for_same_user_are_all_recorded():
    class SlowGateway(FakeGateway):
        async def complete(self, model, messages, deadline=None):
            await asyncio.sleep(0.01)
            return await super().complete(model, messages, deadline)

    orchestrator = _orchestrator(SlowGateway(reply="r"), faqs=())

    async def _run():
        await asyncio.gather(*(orchestrator.handle(f"m{i}", "u1") for i in range(10)))

    asyncio.run(_run())

    assert orchestrator.store.message_count("u1") == 20
    assert _assistant_count(orchestrator.store, "u1") == 10
