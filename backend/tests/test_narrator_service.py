"""Tests for the narrators."""

import json

import httpx
import pytest

from squidbet.data.game_rounds import get_round_by_type
from squidbet.schemas.narrative_schemas import NarrativeContext
from squidbet.schemas.round_schemas import GameRoundType
from squidbet.services import narrator_service
from squidbet.services.narrator_service import (
    OpenAINarrator,
    TemplateNarrator,
    generate_elimination_narrative,
    generate_winner_narrative,
    get_narrator,
)

AI_RESPONSE = """Here is your narrative.

SETUP:
The doll turns its head.
ACTION:
Contestants surge forward.
ELIMINATION: Mira is eliminated mid-stride.
DRAMATIC_MOMENTS:
Silence falls over the field.
"""


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _narrator(handler):
    return OpenAINarrator(
        api_url="https://narrator.test/v1",
        api_key="sk-test",
        model="gpt-test",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def context(contestants):
    rlgl = get_round_by_type(GameRoundType.RED_LIGHT_GREEN_LIGHT)
    return NarrativeContext(
        round=rlgl,
        round_number=1,
        contestants=contestants,
        survivors=contestants[:8],
        eliminated=contestants[8:],
    )


class TestTemplateNarrator:
    """Tests for the local template narrator."""

    async def test_sections(self, context):
        narrative = await TemplateNarrator().generate(context)

        assert narrative.setup_narrative[0] == "Round 1: Red Light, Green Light"
        assert "10 contestants" in narrative.setup_narrative[2]
        assert len(narrative.elimination_narrative) == 2
        assert len(narrative.action_narrative) == 4

    async def test_elimination_line_is_stable(self, context):
        narrator = TemplateNarrator()
        first = await narrator.generate(context)
        second = await narrator.generate(context)
        assert first.elimination_narrative == second.elimination_narrative

    async def test_default_winner_line(self, contestants):
        line = await generate_winner_narrative(contestants[0], TemplateNarrator())
        assert line == "Jihoon emerges victorious from the deadly games!"


class TestOpenAINarrator:
    """Tests for the OpenAI compatible narrator."""

    def test_endpoint_building(self):
        narrator = _narrator(lambda request: httpx.Response(200))
        assert narrator._build_complete_api_url("https://x.test") == "https://x.test/v1/chat/completions"
        assert narrator._build_complete_api_url("https://x.test/v1/") == "https://x.test/v1/chat/completions"
        assert narrator._build_complete_api_url("https://x.test/v1/chat/completions") == "https://x.test/v1/chat/completions"

    def test_parse_response(self):
        narrative = OpenAINarrator.parse_response(AI_RESPONSE)

        assert narrative.setup_narrative == ["The doll turns its head."]
        assert narrative.action_narrative == ["Contestants surge forward."]
        assert narrative.elimination_narrative == ["Mira is eliminated mid-stride."]
        assert narrative.dramatic_moments == ["Silence falls over the field."]

    async def test_generate_sends_prompt(self, context):
        """The request should carry auth, model and contestant profiles."""
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("Authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion(AI_RESPONSE))

        narrative = await _narrator(handler).generate(context)

        assert captured["url"] == "https://narrator.test/v1/chat/completions"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"]["model"] == "gpt-test"
        assert "Taemin" in captured["body"]["messages"][1]["content"]
        assert narrative.setup_narrative == ["The doll turns its head."]

    async def test_http_error_falls_back_to_template(self, context):
        narrator = _narrator(lambda request: httpx.Response(500, json={"error": "boom"}))
        narrative = await narrator.generate(context)

        assert narrative.setup_narrative[0] == "Round 1: Red Light, Green Light"

    async def test_malformed_response_falls_back(self, context):
        narrator = _narrator(lambda request: httpx.Response(200, json={"choices": []}))
        narrative = await narrator.generate(context)

        assert narrative.setup_narrative[0] == "Round 1: Red Light, Green Light"

    async def test_winner_falls_back_to_default(self, contestants):
        narrator = _narrator(lambda request: httpx.Response(503))
        line = await narrator.generate_winner(contestants[1])

        assert line == "Minseo emerges victorious from the deadly games!"

    async def test_elimination_uses_model_text(self, contestants):
        narrator = _narrator(lambda request: httpx.Response(200, json=_completion("  Mira slips.  ")))
        rlgl = get_round_by_type(GameRoundType.RED_LIGHT_GREEN_LIGHT)

        assert await narrator.generate_elimination(contestants[9], rlgl) == "Mira slips."


class TestNarratorSelection:
    """Tests for picking a narrator from settings."""

    def test_template_without_key(self, monkeypatch):
        monkeypatch.setattr(narrator_service.settings, "NARRATOR_API_KEY", None)

        assert isinstance(get_narrator(), TemplateNarrator)
        status = narrator_service.status()
        assert not status.configured
        assert status.narrator == "template"

    def test_openai_with_key(self, monkeypatch):
        monkeypatch.setattr(narrator_service.settings, "NARRATOR_API_KEY", "sk-live")

        assert isinstance(get_narrator(), OpenAINarrator)
        assert narrator_service.status().configured


class TestModuleHelpers:
    """Tests for the single line narrative helpers."""

    async def test_elimination_narrative_default(self, contestants):
        rlgl = get_round_by_type(GameRoundType.RED_LIGHT_GREEN_LIGHT)
        line = await generate_elimination_narrative(contestants[9], rlgl, narrator=TemplateNarrator())

        assert line == "Mira was eliminated from Red Light, Green Light."
