"""Tests for prompt templates and boundary response parsing."""

import json

import pytest

from lytt.errors import ConfigError, SemanticBoundaryError
from lytt.rag.prompts import RAG_SYSTEM_PROMPT, Prompts, render
from lytt.rag.providers.anthropic_provider import ClaudeBoundaryAdapter, parse_boundary_response


class TestRender:
    def test_substitutes_placeholders(self) -> None:
        assert render("Hi {{name}}, {{ name }}!", {"name": "Ada"}) == "Hi Ada, Ada!"

    def test_unknown_placeholders_are_kept(self) -> None:
        assert render("{{question}} {{missing}}", {"question": "why"}) == "why {{missing}}"

    def test_provided_variables_take_precedence(self) -> None:
        prompts = Prompts(variables={"question": "custom", "tone": "friendly"})

        rendered = prompts.render_with_custom("{{question}} ({{tone}})", {"question": "asked"})

        assert rendered == "asked (friendly)"


class TestLoad:
    def test_defaults_without_directory(self) -> None:
        prompts = Prompts.load(None, {"tone": "calm"})

        assert prompts.rag.system == RAG_SYSTEM_PROMPT
        assert prompts.variables == {"tone": "calm"}

    def test_override_file_replaces_given_keys(self, tmp_path) -> None:
        (tmp_path / "rag.json").write_text(json.dumps({"system": "Be brief."}))

        prompts = Prompts.load(tmp_path)

        assert prompts.rag.system == "Be brief."
        assert "{{question}}" in prompts.rag.user
        assert prompts.chunking == Prompts().chunking

    def test_malformed_file_raises(self, tmp_path) -> None:
        (tmp_path / "chunking.json").write_text("{not json")

        with pytest.raises(ConfigError):
            Prompts.load(tmp_path)

    def test_non_object_file_raises(self, tmp_path) -> None:
        (tmp_path / "rag.json").write_text("[]")

        with pytest.raises(ConfigError):
            Prompts.load(tmp_path)


class TestParseBoundaryResponse:
    def test_plain_array(self) -> None:
        text = json.dumps([
            {"title": "Intro", "start_seconds": 0, "end_seconds": 95.5, "summary": "Opening"},
            {"title": "Body", "start_segment": 7},
        ])

        proposals = parse_boundary_response(text)

        assert proposals[0].title == "Intro"
        assert proposals[0].end_seconds == 95.5
        assert proposals[0].summary == "Opening"
        assert proposals[1].start_segment == 7
        assert proposals[1].start_seconds is None

    def test_tolerates_code_fences_and_prose(self) -> None:
        text = 'Here are the sections:\n```json\n[{"title": "Only", "start_seconds": "0"}]\n```\nDone.'

        proposals = parse_boundary_response(text)

        assert len(proposals) == 1
        assert proposals[0].start_seconds == 0.0

    def test_missing_array_raises(self) -> None:
        with pytest.raises(SemanticBoundaryError):
            parse_boundary_response("I could not find any sections.")

    def test_malformed_json_raises(self) -> None:
        with pytest.raises(SemanticBoundaryError):
            parse_boundary_response('[{"title": "Broken",]')

    def test_non_object_entry_raises(self) -> None:
        with pytest.raises(SemanticBoundaryError):
            parse_boundary_response('["Intro", "Body"]')

    def test_invalid_number_raises(self) -> None:
        with pytest.raises(SemanticBoundaryError):
            parse_boundary_response('[{"title": "Intro", "start_seconds": "soon"}]')


class StubClient:
    def __init__(self, response: str):
        self.response = response
        self.prompts: list[str] = []
        self.systems: list = []

    def complete(self, prompt: str, system=None) -> str:
        self.prompts.append(prompt)
        self.systems.append(system)
        return self.response


class TestClaudeBoundaryAdapter:
    def test_renders_chunking_prompt(self, settings) -> None:
        adapter = ClaudeBoundaryAdapter(settings, Prompts())
        adapter._client = StubClient('[{"title": "All", "start_segment": 0}]')

        proposals = adapter.propose_boundaries(
            "[0] (0.0s - 30.0s) hello",
            title="Binary Basics",
            target_seconds=180,
            min_seconds=60,
            max_seconds=600,
        )

        assert proposals[0].title == "All"
        prompt = adapter._client.prompts[0]
        assert "Video Title: Binary Basics" in prompt
        assert "[0] (0.0s - 30.0s) hello" in prompt
        assert "Target section length: 180 seconds (minimum 60, maximum 600)" in prompt
        assert adapter._client.systems[0].startswith("You are a video content analyst")

    def test_unparseable_reply_raises(self, settings) -> None:
        adapter = ClaudeBoundaryAdapter(settings, Prompts())
        adapter._client = StubClient("Sorry, I cannot help with that.")

        with pytest.raises(SemanticBoundaryError):
            adapter.propose_boundaries(
                "[0] (0.0s - 30.0s) hello",
                title="x",
                target_seconds=180,
                min_seconds=60,
                max_seconds=600,
            )
