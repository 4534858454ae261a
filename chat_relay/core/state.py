from chat_relay.core.content import FAQS, PERSONA
from chat_relay.core.context import PromptLimits, load_company_profile
from chat_relay.core.faq import FaqMatcher
from chat_relay.core.gateway import UpstreamGateway
from chat_relay.core.limiter import SlidingWindowLimiter
from chat_relay.core.orchestrator import ChatOrchestrator
from chat_relay.core.session_store import SessionStore
from chat_relay.core.settings import SETTINGS, Settings
from chat_relay.core.sweeper import SessionSweeper


def build_orchestrator(settings: Settings, store: SessionStore, gateway: UpstreamGateway) -> ChatOrchestrator:
    return ChatOrchestrator(
        store=store,
        matcher=FaqMatcher(FAQS, threshold=settings.faq_threshold),
        gateway=gateway,
        persona=PERSONA,
        company_profile=load_company_profile(settings.company_profile_path),
        history_window=settings.history_window,
        max_message_length=settings.max_message_length,
        limits=PromptLimits(
            max_message_chars=settings.max_message_length,
            max_profile_chars=settings.max_profile_chars,
            max_total_chars=settings.max_prompt_chars,
        ),
    )


session_store = SessionStore()
orchestrator = build_orchestrator(SETTINGS, session_store, UpstreamGateway.from_settings(SETTINGS))
sweeper = SessionSweeper(session_store, SETTINGS.session_ttl_sec, SETTINGS.session_sweep_interval_sec)
rate_limiter = SlidingWindowLimiter(SETTINGS.rate_limit_rpm)
