"""
Claude-backed providers: answer generation and semantic boundary proposals.
"""

import json
import logging
from typing import Optional

from anthropic import Anthropic, AnthropicError
from tenacity import retry, stop_after_attempt, wait_exponential

from lytt.config import Settings, get_settings
from lytt.errors import GenerationError, SemanticBoundaryError
from lytt.rag.chunking.base import BoundaryProposal, SemanticBoundaryAdapter
from lytt.rag.prompts import Prompts
from lytt.rag.providers.base import GenerationProvider

logger = logging.getLogger(__name__)


class ClaudeClient:
    """Thin wrapper around the Anthropic messages API with retries."""

    def __init__(self, api_key: str, model: str, max_tokens: int):
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client: Anthropic | None = None

    def _get_client(self) -> Anthropic:
        if self._client is None:
            self._client = Anthropic(api_key=self._api_key)
        return self._client

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10), reraise=True)
    def complete(self, prompt: str, system: Optional[str] = None) -> str:
        kwargs = {}
        if system:
            kwargs["system"] = system

        message = self._get_client().messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        return "".join(block.text for block in message.content if block.type == "text")


class ClaudeGenerationProvider(GenerationProvider):
    """Generates RAG answers with Claude."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self._client = ClaudeClient(
            api_key=settings.anthropic_api_key,
            model=settings.claude_model,
            max_tokens=settings.max_response_tokens,
        )

    @property
    def model_name(self) -> str:
        return self._client.model

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        try:
            return self._client.complete(prompt, system=system)
        except AnthropicError as e:
            raise GenerationError(f"Claude generation failed: {e}", operation="generate") from e


def parse_boundary_response(text: str) -> list[BoundaryProposal]:
    """
    Parse a JSON array of sections out of a model response.

    Tolerates surrounding prose and markdown code fences by taking the text
    between the first ``[`` and the last ``]``.

    Raises:
        SemanticBoundaryError: no array or malformed entries
    """
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        raise SemanticBoundaryError("No JSON array in boundary response", operation="chunk")

    try:
        sections = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise SemanticBoundaryError(f"Malformed boundary JSON: {e}", operation="chunk") from e

    proposals = []
    for i, section in enumerate(sections):
        if not isinstance(section, dict):
            raise SemanticBoundaryError(f"Section {i} is not an object", operation="chunk")
        try:
            proposals.append(
                BoundaryProposal(
                    title=str(section.get("title") or ""),
                    start_seconds=_optional_float(section.get("start_seconds")),
                    end_seconds=_optional_float(section.get("end_seconds")),
                    start_segment=_optional_int(section.get("start_segment")),
                    summary=section.get("summary"),
                )
            )
        except (TypeError, ValueError) as e:
            raise SemanticBoundaryError(f"Section {i} has invalid fields: {e}", operation="chunk") from e

    return proposals


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


class ClaudeBoundaryAdapter(SemanticBoundaryAdapter):
    """Asks Claude to propose topic sections for a transcript."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        prompts: Optional[Prompts] = None,
    ):
        settings = settings or get_settings()
        self.prompts = prompts or Prompts.load(settings.prompts_dir, settings.prompt_variables)
        self._client = ClaudeClient(
            api_key=settings.anthropic_api_key,
            model=settings.chunking_model,
            max_tokens=4096,
        )

    def propose_boundaries(
        self,
        transcript: str,
        *,
        title: str,
        target_seconds: float,
        min_seconds: float,
        max_seconds: float,
    ) -> list[BoundaryProposal]:
        prompt = self.prompts.render_with_custom(
            self.prompts.chunking.user,
            {
                "title": title,
                "transcript": transcript,
                "target_duration": f"{target_seconds:g}",
                "min_duration": f"{min_seconds:g}",
                "max_duration": f"{max_seconds:g}",
            },
        )
        system = self.prompts.render_with_custom(self.prompts.chunking.system, {})

        try:
            response = self._client.complete(prompt, system=system)
        except AnthropicError as e:
            raise SemanticBoundaryError(f"Boundary adapter failed: {e}", operation="chunk") from e

        proposals = parse_boundary_response(response)
        logger.debug(f"Claude proposed {len(proposals)} sections for '{title}'")
        return proposals
