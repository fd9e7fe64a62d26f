"""
prompts.py - Instruction text for Stage 2 (Building) writing prompts

This module renders the instruction sent to the model:
1. A shared preamble: coach role, the fixed Building methodology, and the
   user's context embedded verbatim.
2. A task list that branches on whether the user has already written for
   Stage 2 (first entry vs. continuation and completion check).

Optional fields follow JSON falsiness: null, false, 0 and "" count as not
provided, while any list or object (even an empty one) is rendered.

It also holds the static reflection prompt used when no model answers.
"""

import json
from typing import Any, Optional

# Static explanation of the Building stage, shown to the model on every call
BUILDING_VIRTUE_DEFINITION = (
    "The building virtue process is a cycle of intentional, daily work to align your actions "
    "with your values. Reflection is a cornerstone of this process, encompassing a series of "
    "practices to deepen self-awareness and learning. It includes evening journaling to review "
    "your day and note successes, challenges, and lessons learned related to the virtue. This "
    "practice is your personal space for processing and understanding your growth. It involves "
    "honestly acknowledging struggles but pairing that with kindness. You view lapses not as "
    "failures but as valuable learning opportunities. The goal is to collect raw data for "
    "understanding your growth and to reinforce successes."
)

STAGE2_NOT_STARTED = "The user has not started Stage 2 writing yet."
NO_PREVIOUS_PROMPTS = "No previous prompts for this virtue stage."

# Advisory only; the model is asked to respect it, nothing truncates the output
PROMPT_WORD_LIMIT = 200


def _is_blank(value: Any) -> bool:
    """True for null, false, 0 and ""; containers are never blank."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return not value
    return False


def _format_previous_prompts(previous_prompts: Any) -> str:
    """Compact JSON dump of earlier prompts, or the fixed 'none' phrase."""
    if _is_blank(previous_prompts):
        return NO_PREVIOUS_PROMPTS
    dumped = json.dumps(previous_prompts, ensure_ascii=False, separators=(",", ":"))
    return f'"""{dumped}"""'


def _first_entry_steps(virtue_name: str) -> str:
    return (
        "1. Acknowledges their Stage 1 insights and transition to building\n"
        "2. Identifies ONE specific, limited writing topic for today's reflection\n"
        f"3. Focuses on building new positive habits related to {virtue_name}\n"
    )


def _continuation_steps() -> str:
    return (
        "1. Acknowledges their existing Stage 2 progress and insights, referencing previous prompts if relevant\n"
        "2. Either: (a) If building appears complete, congratulate them and suggest readiness for Stage 3, "
        "OR (b) Focus on areas still needing development\n"
        "3. If incomplete, identify ONE specific building topic for today's reflection\n"
    )


def build_stage2_prompt(
    virtue_name: str,
    virtue_def: str,
    stage1_memo_content: str,
    stage2_memo_content: Optional[str] = None,
    previous_prompts: Any = None,
) -> str:
    """
    Builds the instruction sent to the model for a Stage 2 (Building) writing prompt.

    User text is embedded verbatim. The task list branches on whether the user
    has already written anything for Stage 2: first entry vs. continuation and
    completion check. Same inputs always give the same string.
    """
    stage2_blank = _is_blank(stage2_memo_content)

    # Step 1: Role and the fixed methodology text
    prompt = (
        "You are an empathetic and wise recovery coach. Your task is to generate a focused, "
        "actionable writing prompt for a user working on Stage 2 of their virtue development: "
        "\"Building\".\n\n"
        f"**Building Virtue Definition:** {BUILDING_VIRTUE_DEFINITION}\n\n"
    )

    # Step 2: User context
    prompt += (
        "**USER CONTEXT:**\n"
        f"- **Virtue:** {virtue_name}\n"
        f"- **Virtue Definition:** {virtue_def}\n"
        f"- **Stage 1 Completed Work:** \"\"\"{stage1_memo_content}\"\"\"\n"
        f"- **Stage 2 Progress:** \"\"\"{STAGE2_NOT_STARTED if stage2_blank else stage2_memo_content}\"\"\"\n"
        f"- **Previous Prompts Given:** {_format_previous_prompts(previous_prompts)}\n\n"
    )

    prompt += (
        "**COMPLETION CHECK:** Analyze the user's Stage 2 writing progress. If they have adequately "
        "built new positive behaviors and practices to replace dismantled defects, and demonstrate "
        "consistent reflection on successes/challenges, acknowledge completion and suggest "
        "readiness for Stage 3 (Practice).\n\n"
    )

    # Step 3: Task list, branched on Stage 2 progress
    prompt += (
        "**YOUR TASK:**\n"
        f"Generate a focused writing prompt (limit {PROMPT_WORD_LIMIT} words) that:\n"
    )
    if not stage2_blank:
        prompt += _continuation_steps()
    else:
        prompt += _first_entry_steps(virtue_name)
    prompt += (
        "4. Encourages reflection on recent successes, challenges, triggers, or lessons learned\n"
        "5. Ends with a specific question about applying lessons to future actions\n\n"
        "Keep the scope narrow and actionable. Frame with empathy and encouragement."
    )
    return prompt


def fallback_prompt(virtue_name: str) -> str:
    """Static reflection prompt used when no model produced an answer."""
    return (
        f"Take a quiet moment to reflect on the virtue of {virtue_name}. Consider one specific "
        "time this week where you found it challenging to practice. What was the situation? "
        "What feelings came up for you? Gently explore this memory without judgment."
    )
