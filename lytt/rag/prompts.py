"""
Prompt templates for semantic chunking and RAG generation.

Templates use ``{{name}}`` placeholders. Defaults can be overridden per
file by placing ``chunking.json`` or ``rag.json`` in the configured prompts
directory, each an object with optional ``system`` and ``user`` keys.
"""

import json
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from lytt.errors import ConfigError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


CHUNKING_SYSTEM_PROMPT = """You are a video content analyst. Your task is to analyze transcripts and identify logical content sections while filtering out filler content.

When analyzing a transcript:
1. Look for natural topic transitions and subject changes
2. Group related discussions together
3. Identify distinct segments that cover specific topics
4. Consider speaker context if apparent from the content

Avoid starting sections on filler such as subscription requests, generic greetings, sponsor reads or sign-offs.

Output your analysis as a JSON array of sections."""

CHUNKING_USER_PROMPT = """Analyze this video transcript and identify logical content sections.

Video Title: {{title}}

Each transcript line is formatted as [segment index] (start - end) text.

Transcript:
{{transcript}}

For each section, provide:
- "title": A brief descriptive title (3-8 words) summarizing the actual content
- "start_segment": Index of the segment the section starts at
- "start_seconds": Start timestamp in seconds
- "end_seconds": End timestamp in seconds
- "summary": One sentence describing the substantive content

Target section length: {{target_duration}} seconds (minimum {{min_duration}}, maximum {{max_duration}})

Sections must be in order, must not overlap and together must cover the whole transcript.

Respond with a JSON array of section objects. Example:
[
  {"title": "Binary Number Representation", "start_segment": 0, "start_seconds": 0, "end_seconds": 220, "summary": "Explains how binary numbers work and their relationship to decimal."},
  {"title": "Bitwise Operations", "start_segment": 31, "start_seconds": 220, "end_seconds": 450, "summary": "Covers AND, OR, XOR and shift operations with examples."}
]"""

RAG_SYSTEM_PROMPT = """You are a helpful assistant that answers questions based on video content from the user's knowledge base.

Guidelines:
- Answer questions using only the provided context from video transcripts
- Always cite your sources with video titles and timestamps
- Use the format [Video Title @ MM:SS] for citations
- If the context doesn't contain relevant information, say so clearly
- Be concise but thorough in your responses
- When multiple sources are relevant, synthesize information across them"""

RAG_USER_PROMPT = """Question: {{question}}

Relevant excerpts from your video knowledge base:

{{context}}

Please answer the question based on the above context."""


def render(template: str, variables: Mapping[str, str]) -> str:
    """
    Substitute ``{{name}}`` placeholders.

    Placeholders without a matching variable are left untouched.
    """
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(substitute, template)


@dataclass(frozen=True)
class PromptPair:
    """System and user templates for one task."""

    system: str
    user: str


@dataclass(frozen=True)
class Prompts:
    """All prompt templates plus user-defined variables."""

    chunking: PromptPair = PromptPair(CHUNKING_SYSTEM_PROMPT, CHUNKING_USER_PROMPT)
    rag: PromptPair = PromptPair(RAG_SYSTEM_PROMPT, RAG_USER_PROMPT)
    variables: dict[str, str] = field(default_factory=dict)

    def render_with_custom(self, template: str, variables: Mapping[str, str]) -> str:
        """Render with custom variables; provided variables take precedence."""
        merged = {**self.variables, **variables}
        return render(template, merged)

    @classmethod
    def load(
        cls,
        prompts_dir: Optional[Path] = None,
        variables: Optional[Mapping[str, str]] = None,
    ) -> "Prompts":
        """
        Load prompts, applying overrides from ``prompts_dir`` when present.

        Args:
            prompts_dir: Directory holding chunking.json / rag.json
            variables: Custom variables available in all prompts

        Returns:
            Prompts instance
        """
        prompts = cls(variables=dict(variables or {}))
        if prompts_dir is None:
            return prompts

        prompts_dir = Path(prompts_dir).expanduser()
        for name in ("chunking", "rag"):
            path = prompts_dir / f"{name}.json"
            if not path.exists():
                continue
            override = _load_override(path, getattr(prompts, name))
            prompts = replace(prompts, **{name: override})
            logger.info(f"Loaded {name} prompt overrides from {path}")

        return prompts


def _load_override(path: Path, default: PromptPair) -> PromptPair:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read prompt file {path}: {e}", operation="load_prompts") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Prompt file {path} must contain a JSON object", operation="load_prompts")

    return PromptPair(
        system=str(data.get("system", default.system)),
        user=str(data.get("user", default.user)),
    )
