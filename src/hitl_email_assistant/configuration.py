"""Model selection and per-run assistant configuration.

Environment variables (optional overrides):
- EMAIL_ASSISTANT_MODEL: default model for both router and tools.
- EMAIL_ASSISTANT_ROUTER_MODEL / EMAIL_ASSISTANT_TOOL_MODEL: role overrides.
- EMAIL_ASSISTANT_MODEL_PROVIDER: provider used when the model has no prefix.
- GEMINI_MODEL: fallback when the above are unset.
- HITL_AUTO_ACCEPT: answer review requests locally instead of suspending.
- EMAIL_ASSISTANT_TIMEZONE: timezone quoted to the tool-calling model.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv
from langchain.chat_models import init_chat_model

from hitl_email_assistant.prompts import (
    default_background,
    default_cal_preferences,
    default_response_preferences,
    default_triage_instructions,
)

_DEFAULT_MODEL = "gemini-2.5-pro"
_DEFAULT_PROVIDER = "google_genai"
_DEFAULT_TIMEZONE = "Australia/Melbourne"
_TRUTHY = ("1", "true", "yes")

# Actions that always pause for a human before taking effect
DEFAULT_HITL_TOOLS = frozenset({"write_email", "schedule_meeting", "question"})


@dataclass(frozen=True)
class ModelSpec:
    """Normalised representation of the chat model + provider."""

    provider: str
    model: str

    @property
    def identifier(self) -> str:
        """``provider:model`` when a provider is set, otherwise just the model."""

        return f"{self.provider}:{self.model}" if self.provider else self.model


def _default_model() -> str:
    return (
        os.environ.get("EMAIL_ASSISTANT_MODEL")
        or os.environ.get("GEMINI_MODEL")
        or _DEFAULT_MODEL
    )


def _default_provider() -> str:
    return os.environ.get("EMAIL_ASSISTANT_MODEL_PROVIDER", _DEFAULT_PROVIDER)


def normalize_model_spec(
    model: str | None = None,
    *,
    model_provider: str | None = None,
    default_model: str | None = None,
    default_provider: str | None = None,
) -> ModelSpec:
    """
    Resolve a provider and model name from explicit values, defaults and env.

    Accepts ``provider:model`` prefixes and Vertex-style ``models/<id>`` paths.
    An explicit prefix wins over ``model_provider``; when neither names a
    provider the default provider is used.

    Returns:
        ModelSpec: the resolved provider and bare model identifier.
    """

    effective_model = (model or "").strip() or default_model or _default_model()
    provider = model_provider or default_provider or _default_provider() or ""

    if ":" in effective_model:
        candidate_provider, candidate_model = (
            part.strip() for part in effective_model.split(":", 1)
        )
        if candidate_provider:
            provider = candidate_provider
        effective_model = candidate_model or default_model or _default_model()

    if effective_model.startswith("models/"):
        effective_model = (
            effective_model.split("/", 1)[1] or default_model or _default_model()
        )

    return ModelSpec(provider=provider, model=effective_model)


def format_model_identifier(model: str | None = None, *, provider: str | None = None) -> str:
    """Provider-prefixed model identifier suitable for logging."""

    return normalize_model_spec(model, model_provider=provider).identifier


def get_llm(temperature: float = 0.0, **kwargs):
    """
    Create a LangChain chat model for the resolved provider/model.

    ``model`` and ``model_provider`` kwargs override the environment; every
    other kwarg is forwarded to ``init_chat_model``. System messages are sent
    natively (``convert_system_message_to_human=False``) unless overridden.
    """

    raw_model = kwargs.pop("model", None)
    provider_override = kwargs.pop("model_provider", None)
    spec = normalize_model_spec(raw_model, model_provider=provider_override)

    kwargs.setdefault("convert_system_message_to_human", False)

    return init_chat_model(
        spec.model,
        model_provider=spec.provider,
        temperature=temperature,
        **kwargs,
    )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in _TRUTHY


@dataclass(frozen=True)
class AssistantConfig:
    """Everything a single assistant instance needs besides its collaborators.

    Instances are immutable and passed explicitly into the graph builders so
    independent runs (and tests) can use different settings side by side.
    """

    background: str = default_background
    triage_instructions: str = default_triage_instructions
    response_preferences: str = default_response_preferences
    cal_preferences: str = default_cal_preferences
    router_model: str | None = None
    tool_model: str | None = None
    hitl_tools: frozenset[str] = field(default=DEFAULT_HITL_TOOLS)
    auto_accept: bool = False
    timezone: str = _DEFAULT_TIMEZONE

    @classmethod
    def from_env(cls, **overrides) -> "AssistantConfig":
        """Build a config from ``.env`` / process environment plus overrides."""

        load_dotenv(find_dotenv(usecwd=True), override=False)
        values = {
            "router_model": os.getenv("EMAIL_ASSISTANT_ROUTER_MODEL") or None,
            "tool_model": os.getenv("EMAIL_ASSISTANT_TOOL_MODEL") or None,
            "auto_accept": _env_flag("HITL_AUTO_ACCEPT"),
            "timezone": os.getenv("EMAIL_ASSISTANT_TIMEZONE", _DEFAULT_TIMEZONE),
        }
        values.update(overrides)
        return cls(**values)

    @property
    def router_identifier(self) -> str:
        return format_model_identifier(self.router_model)

    @property
    def tool_identifier(self) -> str:
        return format_model_identifier(self.tool_model)
