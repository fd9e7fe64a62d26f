"""
generation.py - Ordered model fallback for Stage 2 prompts

Tries each generation backend once, in priority order, and keeps the first
non-empty answer. Backend failures (exceptions, blocked or empty responses)
are logged and skipped; they never reach the caller. If every backend fails,
a static reflection prompt built from the virtue name is returned under the
model name "fallback".
"""

import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from .prompts import fallback_prompt

_logger = logging.getLogger(__name__)

FALLBACK_MODEL = "fallback"


class GenerationBackend(Protocol):
    """Anything with a name that can turn a prompt into text."""

    name: str

    async def generate(self, prompt_text: str) -> str:
        ...


@dataclass(frozen=True)
class GenerationResult:
    text: str
    model: str


async def generate_with_fallback(
    prompt_text: str,
    backends: Sequence[GenerationBackend],
    virtue_name: str,
) -> GenerationResult:
    """
    Run the prompt against each backend in order until one succeeds.

    Args:
        prompt_text: Fully rendered instruction for the model.
        backends: Candidates in priority order; each is called at most once.
        virtue_name: Used only to build the static text on total failure.

    Returns:
        GenerationResult with the generated text and the backend name, or the
        static text with model == FALLBACK_MODEL.
    """
    for backend in backends:
        try:
            _logger.info("Trying model: %s", backend.name)
            text = await backend.generate(prompt_text)
            if not isinstance(text, str) or not text.strip():
                raise ValueError("Invalid response format from model")
        except Exception as e:
            _logger.warning("Model %s failed: %s", backend.name, e)
            continue

        _logger.info("Success with model: %s", backend.name)
        return GenerationResult(text=text, model=backend.name)

    _logger.error("All %d models failed; using static fallback prompt.", len(backends))
    return GenerationResult(text=fallback_prompt(virtue_name), model=FALLBACK_MODEL)
