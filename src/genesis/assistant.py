"""Gemini-backed study coach: prompt construction, request, failure handling."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Literal

import structlog
from google import genai
from google.genai import errors, types

from .config import CredentialResolution, Settings, resolve_credential, validate_credential
from .errors import AssistantError, remediation
from .models import Axiom, Level, Message

ModelTier = Literal["flash", "pro"]
MODEL_TIERS: tuple[ModelTier, ...] = ("flash", "pro")

GREETING = "Hello. I am here to help you see what is already here. Choose an axiom and we will look into its essence."
RESET_NOTICE = "The space is cleared."
KEY_SELECTED_NOTICE = "The space is in tune again. We can continue the path."

REJECTION_STATUSES = frozenset({"UNAUTHENTICATED", "PERMISSION_DENIED"})
REJECTION_MARKERS = ("API key not valid", "API_KEY_INVALID", "Requested entity was not found")

PERSONA = """You are a wise mentor for the "Axioms of Being" system.
Your task is to move the learner from mental noise into clear presence and the integration of being.

Principles:
1. Radical kindness and acceptance.
2. The simplicity of a zen master: less theory, more direct pointing at reality.
3. Practicality: micro-actions in the body and in attention.
4. Grounding, especially on the PARADOX level.

Structure every reply as:
- Insight: (a short core insight)
- Image: (a living metaphor)
- Practice of the moment: (one concrete bodily or mental act)
- Question: (one question for honest self-reflection)"""

PARADOX_NOTE = (
    'If the learner is contemplating an axiom from the PARADOX level, be especially human and ironic, '
    'and take the importance out of "spiritual achievements".'
)

ClientFactory = Callable[[str], Any]

logger = structlog.get_logger(__name__)


def build_system_instruction(levels: Sequence[Level], focus: Axiom | None = None) -> str:
    """Serialize the curriculum into the coach's system instruction."""
    architecture = "\n\n".join(
        f"LEVEL {level.id} ({level.code}): {level.name}\n"
        + "\n".join(f"{axiom.id}: {axiom.title} - {axiom.description}" for axiom in level.axioms)
        for level in levels
    )
    parts = [PERSONA, f"Full architecture of the system:\n{architecture}", PARADOX_NOTE]
    if focus is not None:
        parts.append(f"The learner is currently contemplating {focus.id}: {focus.title}.")
    return "\n\n".join(parts)


def contemplation_prompt(axiom: Axiom) -> str:
    """Suggested opening message for a focused axiom."""
    return f'I am contemplating the axiom "{axiom.title}". Help me integrate it into today.'


def alternate_tier(tier: ModelTier) -> ModelTier:
    """Return the other model tier."""
    return "pro" if tier == "flash" else "flash"


def classify_failure(exc: BaseException) -> AssistantError:
    """Map a provider or transport exception onto a tagged failure."""
    if isinstance(exc, AssistantError):
        return exc
    if isinstance(exc, errors.APIError):
        message = str(exc.message or exc)
        status = str(exc.status or "")
        if exc.code in (401, 403) or status in REJECTION_STATUSES or _has_rejection_marker(message):
            return AssistantError("provider-rejected", f"{exc.code} {status} {message}".strip())
        return AssistantError("unclassified", f"{exc.code} {status} {message}".strip())
    text = str(exc)
    if _has_rejection_marker(text):
        return AssistantError("provider-rejected", text)
    return AssistantError("unclassified", f"{type(exc).__name__}: {text}" if text else type(exc).__name__)


def _has_rejection_marker(text: str) -> bool:
    return any(marker in text for marker in REJECTION_MARKERS)


def _default_client_factory(api_key: str) -> Any:
    return genai.Client(api_key=api_key)


class AssistantClient:
    """Turns a user utterance plus prior turns into one coach reply."""

    def __init__(
        self,
        levels: Sequence[Level],
        settings: Settings,
        client_factory: ClientFactory | None = None,
    ) -> None:
        """Initialize with curriculum, settings and an optional SDK client factory."""
        self.levels = list(levels)
        self.settings = settings
        self.runtime_key: str | None = None
        self._client_factory = client_factory or _default_client_factory

    def credential(self) -> CredentialResolution:
        """Resolve the key currently in effect."""
        return resolve_credential(self.settings, self.runtime_key)

    def check_credential(self) -> str:
        """Return a usable key or raise a configuration failure."""
        return validate_credential(self.credential())

    def model_for(self, tier: ModelTier) -> str:
        """Return the provider model name for a tier."""
        if tier == "pro":
            return self.settings.GENESIS_PRO_MODEL
        return self.settings.GENESIS_FLASH_MODEL

    def build_contents(self, message: str, history: Sequence[Message]) -> list[types.Content]:
        """Return role/text turns followed by the new user message."""
        contents = [
            types.Content(role=item.role, parts=[types.Part(text=item.text)]) for item in history if item.text
        ]
        contents.append(types.Content(role="user", parts=[types.Part(text=message)]))
        return contents

    def build_config(self, tier: ModelTier, focus: Axiom | None = None) -> types.GenerateContentConfig:
        """Return generation config; only the pro tier asks for a thinking budget."""
        thinking = None
        if tier == "pro":
            thinking = types.ThinkingConfig(thinking_budget=self.settings.GENESIS_PRO_THINKING_BUDGET)
        return types.GenerateContentConfig(
            system_instruction=build_system_instruction(self.levels, focus),
            temperature=self.settings.GENESIS_TEMPERATURE,
            thinking_config=thinking,
        )

    async def reply(
        self,
        message: str,
        history: Sequence[Message],
        tier: ModelTier = "flash",
        focus: Axiom | None = None,
    ) -> str:
        """Send one turn and return the reply text.

        Raises `AssistantError`. With `GENESIS_TIER_FALLBACK` enabled an
        unclassified failure is retried once on the other tier.
        """
        api_key = self.check_credential()
        try:
            return await self._generate(api_key, message, history, tier, focus)
        except AssistantError as exc:
            if exc.kind != "unclassified" or not self.settings.GENESIS_TIER_FALLBACK:
                raise
            fallback = alternate_tier(tier)
            logger.warning("assistant_tier_fallback", tier=tier, fallback=fallback, detail=exc.detail)
            return await self._generate(api_key, message, history, fallback, focus)

    async def _generate(
        self,
        api_key: str,
        message: str,
        history: Sequence[Message],
        tier: ModelTier,
        focus: Axiom | None,
    ) -> str:
        model = self.model_for(tier)
        logger.info("assistant_request", model=model, tier=tier, history=len(history))
        client = self._client_factory(api_key)
        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=self.build_contents(message, history),
                config=self.build_config(tier, focus),
            )
        except Exception as exc:
            failure = classify_failure(exc)
            logger.warning("assistant_failure", kind=failure.kind, model=model, detail=failure.detail)
            raise failure from exc
        finally:
            await client.aio.aclose()

        text = getattr(response, "text", None)
        if not text or not text.strip():
            logger.warning("assistant_failure", kind="empty-response", model=model)
            raise AssistantError("empty-response", f"model {model} returned no text")
        return text


class ChatSession:
    """One coach conversation: history, tier selection and an in-flight guard."""

    def __init__(self, client: AssistantClient, tier: ModelTier = "flash") -> None:
        """Start a conversation with the greeting message."""
        self.client = client
        self.tier: ModelTier = tier
        self.messages: list[Message] = [Message(role="model", text=GREETING)]
        self.loading = False
        self.focus: Axiom | None = None
        self.key_selected = client.credential().source != "unconfigured"

    def set_tier(self, tier: str) -> None:
        """Switch model tier."""
        if tier not in MODEL_TIERS:
            raise ValueError(f"Unknown model tier: {tier}")
        self.tier = "pro" if tier == "pro" else "flash"

    def focus_on(self, axiom: Axiom | None) -> str:
        """Set the axiom in focus and return the suggested opening message."""
        self.focus = axiom
        return contemplation_prompt(axiom) if axiom is not None else ""

    def transmitted_history(self) -> list[Message]:
        """Return conversation turns that go to the provider, stripped of side content."""
        return [
            Message(role=item.role, text=item.text)
            for item in self.messages
            if item.text and item.error_kind is None and item.action is None
        ]

    async def send(self, text: str) -> Message | None:
        """Send a user turn; returns the appended reply, or None when nothing was sent."""
        trimmed = text.strip()
        if not trimmed or self.loading:
            return None

        try:
            self.client.check_credential()
        except AssistantError as exc:
            self.key_selected = False
            return self._append_failure(exc)
        if not self.key_selected:
            # The last key was rejected; only select_key() re-enables requests.
            return self._append_failure(AssistantError("provider-rejected", "awaiting a new key"))

        history = self.transmitted_history()
        self.messages.append(Message(role="user", text=trimmed))
        self.loading = True
        try:
            reply = await self.client.reply(trimmed, history, self.tier, self.focus)
        except AssistantError as exc:
            if exc.kind == "provider-rejected":
                self.key_selected = False
            return self._append_failure(exc)
        finally:
            self.loading = False

        message = Message(role="model", text=reply)
        self.messages.append(message)
        return message

    def reset(self) -> None:
        """Clear the conversation."""
        self.messages = [Message(role="model", text=RESET_NOTICE)]

    def select_key(self, api_key: str) -> bool:
        """Use a key entered at runtime; returns False for blank input."""
        if not api_key.strip():
            return False
        self.client.runtime_key = api_key.strip()
        self.key_selected = True
        self.messages.append(Message(role="model", text=KEY_SELECTED_NOTICE))
        return True

    def _append_failure(self, exc: AssistantError) -> Message:
        text = remediation(exc.kind)
        if exc.kind == "unclassified" and exc.detail:
            text = f"{text}\n{exc.detail}"
        message = Message(
            role="model",
            text=text,
            action="select-key" if exc.needs_credential else None,
            error_kind=exc.kind,
        )
        self.messages.append(message)
        return message
