"""
validation.py - Request checks for the Stage 2 prompt endpoint

Two checks run before any prompt is built:
1. `validate_payload` confirms the body is a JSON object carrying the three
   required virtue fields and extracts a `Stage2Request`.
2. `stage1_gate_passes` decides whether Stage 1 (Dismantling) is complete
   enough for Stage 2 (Building) to begin.

A failed payload check is a client error (400). A failed gate is a normal
workflow outcome: the caller is sent back to Stage 1 with a 200.
"""

from dataclasses import dataclass
from typing import Any, Optional

# Minimum stripped length of the Stage 1 memo before Stage 2 opens
STAGE1_MIN_CHARS = 50

INVALID_BODY_MESSAGE = "Invalid request body"
MISSING_FIELDS_MESSAGE = (
    "Missing required fields: virtueName, virtueDef, and characterDefectAnalysis are required."
)

STAGE1_REQUIRED_MESSAGE = (
    "Before beginning Stage 2 (Building), please complete Stage 1 (Dismantling) first. "
    "Stage 1 provides the foundation for understanding what needs to change before you can "
    "build new, healthier habits. Return to Stage 1 and mark it as complete when you've "
    "finished your reflection."
)


class PayloadError(ValueError):
    """The request body is missing, not an object, or lacks required fields."""


@dataclass(frozen=True)
class Stage2Request:
    virtue_name: str
    virtue_def: str
    # Required by the endpoint but not rendered into the prompt
    character_defect_analysis: Any
    stage1_complete: Any = False
    stage1_memo_content: Any = None
    stage2_memo_content: Any = None
    previous_prompts: Any = None


def validate_payload(body: Any) -> Stage2Request:
    """
    Validate a parsed JSON body and extract the Stage 2 fields.

    Unknown keys are ignored.

    Raises:
        PayloadError: body is not an object, or a required field is missing/falsy.
    """
    if not isinstance(body, dict):
        raise PayloadError(INVALID_BODY_MESSAGE)

    virtue_name = body.get("virtueName")
    virtue_def = body.get("virtueDef")
    defect_analysis = body.get("characterDefectAnalysis")
    if not virtue_name or not virtue_def or not defect_analysis:
        raise PayloadError(MISSING_FIELDS_MESSAGE)

    return Stage2Request(
        virtue_name=virtue_name,
        virtue_def=virtue_def,
        character_defect_analysis=defect_analysis,
        stage1_complete=body.get("stage1Complete", False),
        stage1_memo_content=body.get("stage1MemoContent"),
        stage2_memo_content=body.get("stage2MemoContent"),
        previous_prompts=body.get("previousPrompts"),
    )


def stage1_gate_passes(stage1_complete: Any, stage1_memo_content: Optional[str]) -> bool:
    """
    True only if Stage 1 is flagged complete and its memo has at least
    STAGE1_MIN_CHARS characters once surrounding whitespace is removed.
    A memo that is not a string never passes.
    """
    if not stage1_complete:
        return False
    if not isinstance(stage1_memo_content, str):
        return False
    return len(stage1_memo_content.strip()) >= STAGE1_MIN_CHARS
