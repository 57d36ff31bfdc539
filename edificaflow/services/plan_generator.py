from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import openai
from openai import OpenAI

from edificaflow.config import SETTINGS, Settings
from edificaflow.domain.entities import PlanSuggestion
from edificaflow.domain.enums import Category, Frequency, Priority, RequestState
from edificaflow.domain.errors import PlanGenerationError, RequestInFlightError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Erro ao gerar plano via IA. Verifique sua conexão."

PROMPT_TEMPLATE = (
    "Gere um cronograma de manutenção predial preventiva detalhado para o seguinte "
    "perfil de edifício: {description}.\n"
    "Retorne uma lista de tarefas contendo título, descrição, categoria, frequência, "
    "prioridade e uma explicação do porquê essa manutenção é necessária."
)

_REQUIRED_FIELDS = ("title", "description", "category", "frequency", "priority")

PLAN_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "tasks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "category": {"type": "string", "enum": [c.value for c in Category]},
                    "frequency": {"type": "string", "enum": [f.value for f in Frequency]},
                    "priority": {"type": "string", "enum": [p.name for p in Priority]},
                    "justification": {"type": "string"},
                },
                "required": list(_REQUIRED_FIELDS),
            },
        }
    },
    "required": ["tasks"],
}


class PlanSource(Protocol):
    def generate(self, description: str) -> list[PlanSuggestion]: ...


def parse_plan(content: str | None) -> list[PlanSuggestion]:
    try:
        raw = json.loads((content or "[]").strip())
    except ValueError as exc:
        raise PlanGenerationError("AI response is not valid JSON") from exc

    if isinstance(raw, dict):
        raw = raw.get("tasks")
    if not isinstance(raw, list):
        raise PlanGenerationError("AI response does not contain a task list")

    return [_suggestion_from_item(item) for item in raw]


def _suggestion_from_item(item: Any) -> PlanSuggestion:
    if not isinstance(item, dict):
        raise PlanGenerationError(f"Unexpected plan item: {item!r}")
    missing = [name for name in _REQUIRED_FIELDS if not str(item.get(name) or "").strip()]
    if missing:
        raise PlanGenerationError(f"Plan item is missing fields: {', '.join(missing)}")
    try:
        frequency = Frequency(str(item["frequency"]).strip().upper())
        priority = Priority[str(item["priority"]).strip().upper()]
    except (KeyError, ValueError) as exc:
        raise PlanGenerationError(f"Plan item has an unknown enum value: {exc}") from exc
    justification = item.get("justification")
    return PlanSuggestion(
        title=str(item["title"]).strip(),
        description=str(item["description"]).strip(),
        category=str(item["category"]).strip(),
        frequency=frequency,
        priority=priority,
        justification=str(justification).strip() if justification else None,
    )


class PlanGenerator:
    def __init__(self, settings: Settings = SETTINGS, client: OpenAI | None = None) -> None:
        self._settings = settings
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is not None:
            return self._client
        if not self._settings.ai_api_key:
            raise PlanGenerationError("AI API key is not set. Set AI_API_KEY in your .env.")
        self._client = OpenAI(
            base_url=self._settings.ai_base_url,
            api_key=self._settings.ai_api_key,
            max_retries=0,
        )
        return self._client

    def generate(self, description: str) -> list[PlanSuggestion]:
        client = self._get_client()
        logger.info("Requesting maintenance plan model=%s", self._settings.ai_model)
        try:
            response = client.chat.completions.create(
                model=self._settings.ai_model,
                messages=[
                    {"role": "user", "content": PROMPT_TEMPLATE.format(description=description)}
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "maintenance_plan", "schema": PLAN_SCHEMA},
                },
            )
        except openai.OpenAIError as exc:
            raise PlanGenerationError(f"AI request failed: {exc}") from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise PlanGenerationError("AI response has no content") from exc

        suggestions = parse_plan(content)
        logger.info("Maintenance plan received tasks=%s", len(suggestions))
        return suggestions


class PlanRequest:
    """Tracks the single outstanding plan request; a second submit is refused while one runs."""

    def __init__(self, source: PlanSource) -> None:
        self._source = source
        self.state = RequestState.IDLE
        self.error: str | None = None

    @property
    def can_submit(self) -> bool:
        return self.state != RequestState.IN_FLIGHT

    def begin(self) -> None:
        if self.state == RequestState.IN_FLIGHT:
            raise RequestInFlightError("A plan request is already in flight")
        self.state = RequestState.IN_FLIGHT
        self.error = None

    def submit(self, description: str) -> list[PlanSuggestion]:
        if not description.strip():
            return []
        self.begin()
        try:
            suggestions = self._source.generate(description.strip())
        except Exception:  # noqa: BLE001
            logger.exception("Maintenance plan generation failed")
            self.state = RequestState.FAILED
            self.error = GENERIC_ERROR_MESSAGE
            return []
        self.state = RequestState.SUCCEEDED
        return suggestions
