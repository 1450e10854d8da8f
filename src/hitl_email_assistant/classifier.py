"""Triage classification: one structured-output call per email."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from langchain_core.exceptions import OutputParserException
from langsmith import traceable
from pydantic import ValidationError

from hitl_email_assistant.configuration import AssistantConfig
from hitl_email_assistant.errors import ClassificationError, InvalidClassification
from hitl_email_assistant.prompts import triage_system_prompt, triage_user_prompt
from hitl_email_assistant.schemas import RouterSchema
from hitl_email_assistant.utils import parse_email

logger = logging.getLogger(__name__)


def _only_classification_invalid(exc: ValidationError) -> bool:
    errors = exc.errors()
    return bool(errors) and all(
        err.get("loc") == ("classification",) and err.get("type") == "literal_error"
        for err in errors
    )


def coerce_router_output(result: Any) -> RouterSchema:
    """Coerce raw structured output into ``RouterSchema`` or fail loudly."""

    if isinstance(result, RouterSchema):
        return result
    if result is None:
        raise ClassificationError("Router model returned no structured output")
    try:
        if isinstance(result, Mapping):
            return RouterSchema.model_validate(dict(result))
        return RouterSchema.model_validate(result, from_attributes=True)
    except ValidationError as exc:
        if _only_classification_invalid(exc):
            raw = result.get("classification") if isinstance(result, Mapping) else getattr(result, "classification", None)
            raise InvalidClassification(raw) from exc
        raise ClassificationError(f"Router output does not match RouterSchema: {exc}") from exc


class EmailClassifier:
    """Builds the triage prompts and runs the structured router model.

    ``router_llm`` must already be constrained to ``RouterSchema``, e.g.
    ``get_llm(...).with_structured_output(RouterSchema)``.
    """

    def __init__(self, router_llm: Any, config: AssistantConfig | None = None):
        self.router_llm = router_llm
        self.config = config or AssistantConfig()

    def build_prompt(self, email_input: dict) -> list[dict[str, str]]:
        author, to, subject, email_thread = parse_email(email_input)
        system_prompt = triage_system_prompt.format(
            background=self.config.background,
            triage_instructions=self.config.triage_instructions,
        )
        user_prompt = triage_user_prompt.format(
            author=author, to=to, subject=subject, email_thread=email_thread
        )
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    @traceable(run_type="chain", name="classify_email")
    def classify(self, email_input: dict) -> RouterSchema:
        try:
            result = self.router_llm.invoke(self.build_prompt(email_input))
        except ValidationError as exc:
            # with_structured_output validates inside invoke
            if _only_classification_invalid(exc):
                raise InvalidClassification(exc.errors()[0].get("input")) from exc
            raise ClassificationError(f"Router output could not be parsed: {exc}") from exc
        except OutputParserException as exc:
            raise ClassificationError(f"Router output could not be parsed: {exc}") from exc

        decision = coerce_router_output(result)
        logger.info("Triage classification=%s reasoning=%s", decision.classification, decision.reasoning)
        return decision
