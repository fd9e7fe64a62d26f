import pytest

from virtue_coach.validation import (
    INVALID_BODY_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    STAGE1_MIN_CHARS,
    PayloadError,
    stage1_gate_passes,
    validate_payload,
)


@pytest.mark.parametrize("body", [None, [], "text", 42])
def test_non_object_body_is_rejected(body) -> None:
    with pytest.raises(PayloadError) as exc:
        validate_payload(body)
    assert str(exc.value) == INVALID_BODY_MESSAGE


@pytest.mark.parametrize("missing", ["virtueName", "virtueDef", "characterDefectAnalysis"])
def test_missing_required_field_is_rejected(valid_payload, missing) -> None:
    body = dict(valid_payload)
    del body[missing]

    with pytest.raises(PayloadError) as exc:
        validate_payload(body)
    assert str(exc.value) == MISSING_FIELDS_MESSAGE


def test_empty_required_field_is_rejected(valid_payload) -> None:
    body = dict(valid_payload, virtueDef="")

    with pytest.raises(PayloadError):
        validate_payload(body)


def test_extracts_fields_and_ignores_unknown_keys(valid_payload) -> None:
    body = dict(valid_payload, stage2MemoContent="progress", previousPrompts=["a"], extra="ignored")

    request = validate_payload(body)

    assert request.virtue_name == "Patience"
    assert request.character_defect_analysis == "I snap at people when plans change."
    assert request.stage1_complete is True
    assert request.stage2_memo_content == "progress"
    assert request.previous_prompts == ["a"]


def test_optional_fields_default_when_absent() -> None:
    request = validate_payload({"virtueName": "Honesty", "virtueDef": "d", "characterDefectAnalysis": "c"})

    assert request.stage1_complete is False
    assert request.stage1_memo_content is None
    assert request.stage2_memo_content is None
    assert request.previous_prompts is None


def test_gate_passes_at_minimum_length() -> None:
    assert stage1_gate_passes(True, "y" * STAGE1_MIN_CHARS)


def test_gate_ignores_surrounding_whitespace() -> None:
    memo = "   " + "y" * (STAGE1_MIN_CHARS - 1) + "   \n"
    assert not stage1_gate_passes(True, memo)


@pytest.mark.parametrize(
    "complete, memo",
    [
        (False, "y" * 80),
        (None, "y" * 80),
        (True, None),
        (True, ""),
        (True, "short"),
        (True, 12345),
    ],
)
def test_gate_fails(complete, memo) -> None:
    assert not stage1_gate_passes(complete, memo)


def test_empty_object_reports_missing_fields() -> None:
    with pytest.raises(PayloadError) as exc:
        validate_payload({})
    assert str(exc.value) == MISSING_FIELDS_MESSAGE


@pytest.mark.parametrize("value", [[], {}])
def test_empty_container_required_field_is_rejected(valid_payload, value) -> None:
    body = dict(valid_payload, virtueName=value)

    with pytest.raises(PayloadError) as exc:
        validate_payload(body)
    assert str(exc.value) == MISSING_FIELDS_MESSAGE
