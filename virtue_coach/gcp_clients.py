"""
gcp_clients.py - Google Cloud + Vertex AI Helper Utilities

This module owns everything that talks to Vertex AI:
1. Loads environment variables from a `.env` file if available.
2. Resolves the project/region the Vertex AI client is bound to.
3. Initializes the Vertex AI SDK once per process.
4. Exposes `VertexModelBackend`, one generation backend per Gemini model,
   and `build_vertex_backends()` to construct the ordered candidate list.

Backends raise on any failure (SDK error, blocked prompt, empty text). They never
retry; moving on to the next candidate is the caller's job (see generation.py).
"""

import os
import logging
from typing import Any, Iterable, Optional, Tuple

# dotenv is used to load environment variables from a .env file
from dotenv import load_dotenv, find_dotenv

import vertexai
from vertexai.generative_models import GenerativeModel

# Module logger (for debug/info/warning/error logs)
_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())

# --- Load environment variables on import ---
try:
    _env_path = find_dotenv(usecwd=True)
    if _env_path:
        load_dotenv(_env_path, override=False)
        _logger.debug("Loaded .env from %s", _env_path)
    else:
        load_dotenv(override=False)
        _logger.debug("No .env found with find_dotenv(); attempted default load.")
except Exception as e:
    _logger.warning("Error loading .env: %s", e)

# Default candidate order: cheapest/fastest first, oldest last
DEFAULT_MODEL_NAMES: Tuple[str, ...] = (
    "gemini-2.5-flash-lite",
    "gemini-2.0-flash-lite",
    "gemini-1.5-flash-lite",
    "gemini-1.5-flash",
    "gemini-pro",
)


def _parse_model_names(raw: Optional[str]) -> Tuple[str, ...]:
    """
    Parse a comma-separated VERTEX_MODEL_NAMES value.
    Falls back to DEFAULT_MODEL_NAMES when unset or empty.
    """
    if not raw:
        return DEFAULT_MODEL_NAMES
    names = tuple(name.strip() for name in raw.split(",") if name.strip())
    return names or DEFAULT_MODEL_NAMES


# --- Environment Configurations (defaults provided) ---
GCP_PROJECT: str = os.environ.get("GCP_PROJECT", "new-man-app")
GCP_LOCATION: str = os.environ.get("GCP_LOCATION", "us-central1")
VERTEX_MODEL_NAMES: Tuple[str, ...] = _parse_model_names(os.environ.get("VERTEX_MODEL_NAMES"))

_logger.debug(
    "GCP_PROJECT=%s, GCP_LOCATION=%s, VERTEX_MODEL_NAMES=%s",
    GCP_PROJECT,
    GCP_LOCATION,
    ",".join(VERTEX_MODEL_NAMES),
)

# Flag to track Vertex initialization
_vertex_initialized = False


class GenerationError(RuntimeError):
    """Raised when a model call returns no usable text."""


def init_vertex(project: Optional[str] = None, location: Optional[str] = None) -> bool:
    """
    Initialize the Vertex AI SDK for text generation.
    - Safe to call multiple times; only the first successful call does work.
    - Returns whether Vertex AI is initialized after the call.
    """
    global _vertex_initialized
    if _vertex_initialized:
        return True

    project = project or GCP_PROJECT
    location = location or GCP_LOCATION
    try:
        _logger.info("Initializing Vertex AI: project=%s, location=%s", project, location)
        vertexai.init(project=project, location=location)
        _vertex_initialized = True
        _logger.info("Vertex AI initialized successfully")
    except Exception as e:
        _logger.exception("Vertex AI initialization failed: %s", e)
        _vertex_initialized = False
    return _vertex_initialized


def extract_candidate_text(response: Any) -> str:
    """
    Pull the generated text out of a Vertex AI response.

    The official way to get text is from the first candidate's first part.
    Raises GenerationError if the response was blocked or is otherwise malformed.
    """
    candidates = getattr(response, "candidates", None)
    if not candidates:
        _logger.warning(
            "Vertex AI response had no candidates. Prompt Feedback: %s",
            getattr(response, "prompt_feedback", None),
        )
        raise GenerationError("Invalid response format from model")

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        raise GenerationError("Invalid response format from model")

    text = getattr(parts[0], "text", None)
    if not isinstance(text, str) or not text.strip():
        raise GenerationError("Model returned empty text")
    return text


class VertexModelBackend:
    """
    One Gemini model on Vertex AI, exposed as a generation backend.

    `name` is reported back to the caller as the `model` field when this
    backend produces the answer.
    """

    def __init__(self, model_name: str):
        self.name = model_name
        self._model: Optional[GenerativeModel] = None

    async def generate(self, prompt_text: str) -> str:
        if self._model is None:
            # Built on first use so a Vertex init failure surfaces per call, not at startup
            self._model = GenerativeModel(self.name)
        response = await self._model.generate_content_async(prompt_text)
        return extract_candidate_text(response)

    def __repr__(self) -> str:
        return f"VertexModelBackend({self.name!r})"


def build_vertex_backends(model_names: Optional[Iterable[str]] = None) -> Tuple[VertexModelBackend, ...]:
    """
    Initialize Vertex AI and build the ordered, immutable backend list.

    Args:
        model_names: Candidate order override; defaults to VERTEX_MODEL_NAMES.

    Returns:
        Tuple of backends in priority order.
    """
    init_vertex()
    names = tuple(model_names) if model_names is not None else VERTEX_MODEL_NAMES
    backends = tuple(VertexModelBackend(name) for name in names)
    _logger.info("Configured %d Vertex AI model backends: %s", len(backends), ", ".join(names))
    return backends
