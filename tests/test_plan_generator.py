from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from edificaflow.config import Settings
from edificaflow.domain.entities import PlanSuggestion
from edificaflow.domain.enums import Frequency, Priority, RequestState
from edificaflow.domain.errors import PlanGenerationError, RequestInFlightError
from edificaflow.services.plan_generator import (
    GENERIC_ERROR_MESSAGE,
    PlanGenerator,
    PlanRequest,
    parse_plan,
)

SETTINGS = Settings(database_url="sqlite://", ai_api_key="test-key", ai_model="test-model")

PLAN = {
    "tasks": [
        {
            "title": "Inspeção do SPDA",
            "description": "Verificar captores e descidas",
            "category": "Elétrica",
            "frequency": "ANNUAL",
            "priority": "HIGH",
            "justification": "Exigência da NBR 5419",
        },
        {
            "title": "Limpeza de calhas",
            "description": "Remover folhas e detritos",
            "category": "Limpeza",
            "frequency": "QUARTERLY",
            "priority": "MEDIUM",
        },
    ]
}


class FakeCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_client(completions: FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class FakeSource:
    def __init__(self, result: list[PlanSuggestion] | None = None, error: Exception | None = None):
        self.result = result or []
        self.error = error
        self.descriptions: list[str] = []

    def generate(self, description: str) -> list[PlanSuggestion]:
        self.descriptions.append(description)
        if self.error is not None:
            raise self.error
        return self.result


def test_parse_plan_reads_task_object() -> None:
    suggestions = parse_plan(json.dumps(PLAN))

    assert [s.title for s in suggestions] == ["Inspeção do SPDA", "Limpeza de calhas"]
    assert suggestions[0].frequency == Frequency.ANNUAL
    assert suggestions[0].priority == Priority.HIGH
    assert suggestions[0].justification == "Exigência da NBR 5419"
    assert suggestions[1].justification is None


def test_parse_plan_accepts_bare_list() -> None:
    assert len(parse_plan(json.dumps(PLAN["tasks"]))) == 2


def test_parse_plan_keeps_unknown_category() -> None:
    item = {**PLAN["tasks"][0], "category": "SPDA"}

    assert parse_plan(json.dumps([item]))[0].category == "SPDA"


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps({"plan": []}),
        json.dumps(["texto"]),
        json.dumps([{**PLAN["tasks"][0], "title": ""}]),
        json.dumps([{**PLAN["tasks"][0], "frequency": "HOURLY"}]),
        json.dumps([{**PLAN["tasks"][0], "priority": "URGENT"}]),
    ],
)
def test_parse_plan_rejects_bad_content(content: str) -> None:
    with pytest.raises(PlanGenerationError):
        parse_plan(content)


def test_generate_sends_schema_request() -> None:
    completions = FakeCompletions(json.dumps(PLAN))
    generator = PlanGenerator(SETTINGS, client=make_client(completions))

    suggestions = generator.generate("Edifício residencial de 12 andares")

    assert len(suggestions) == 2
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert "Edifício residencial de 12 andares" in call["messages"][0]["content"]
    assert call["response_format"]["type"] == "json_schema"
    assert call["response_format"]["json_schema"]["name"] == "maintenance_plan"


def test_generate_wraps_transport_errors() -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://example.invalid"))
    generator = PlanGenerator(SETTINGS, client=make_client(FakeCompletions(error=error)))

    with pytest.raises(PlanGenerationError):
        generator.generate("Prédio comercial")


def test_generate_without_api_key_fails() -> None:
    generator = PlanGenerator(Settings(database_url="sqlite://"))

    with pytest.raises(PlanGenerationError):
        generator.generate("Prédio comercial")


def test_request_success() -> None:
    suggestion = PlanSuggestion("A", "B", "Geral", Frequency.MONTHLY, Priority.LOW)
    source = FakeSource([suggestion])
    request = PlanRequest(source)

    assert request.submit("  Galpão industrial  ") == [suggestion]
    assert request.state == RequestState.SUCCEEDED
    assert request.error is None
    assert source.descriptions == ["Galpão industrial"]


def test_request_failure_reports_generic_message() -> None:
    request = PlanRequest(FakeSource(error=PlanGenerationError("boom")))

    assert request.submit("Hospital") == []
    assert request.state == RequestState.FAILED
    assert request.error == GENERIC_ERROR_MESSAGE
    assert request.can_submit


def test_request_recovers_after_failure() -> None:
    source = FakeSource(error=RuntimeError("offline"))
    request = PlanRequest(source)
    request.submit("Hospital")

    source.error = None
    request.submit("Hospital")

    assert request.state == RequestState.SUCCEEDED
    assert request.error is None


def test_blank_description_is_ignored() -> None:
    source = FakeSource()
    request = PlanRequest(source)

    assert request.submit("   ") == []
    assert request.state == RequestState.IDLE
    assert source.descriptions == []


def test_second_request_refused_while_in_flight() -> None:
    request = PlanRequest(FakeSource())
    request.begin()

    assert not request.can_submit
    with pytest.raises(RequestInFlightError):
        request.submit("Escola")
