import pytest

from priming.core.errors import ApiError, ErrorCode
from priming.schemas import (
    AssignChildRequest,
    ChildPatch,
    LoginRequest,
    ProgressRequest,
    RegisterRequest,
    SurveyCreateRequest,
    SurveyPatch,
    UserPatch,
)
from priming.services.validation import (
    valid_email,
    valid_password,
    validate_child_assignment,
    validate_child_patch,
    validate_login,
    validate_password_change,
    validate_progress,
    validate_registration,
    validate_survey,
    validate_survey_patch,
    validate_user_patch,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("ana@example.com", True),
        ("a@b.co", True),
        ("no-at-sign.com", False),
        ("two@@example.com", False),
        ("spaces in@example.com", False),
        ("missing@tld", False),
        ("", False),
        (None, False),
    ],
)
def test_valid_email(value, expected):
    assert valid_email(value) is expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Secret1", True),
        ("  Abc123  ", True),
        ("secret1", False),
        ("SECRETX", False),
        ("Ab1", False),
        ("   ", False),
        (None, False),
    ],
)
def test_valid_password(value, expected):
    assert valid_password(value) is expected


def test_registration_collects_missing_fields():
    data = RegisterRequest(email="ev@example.com", password="Secret123", role="evaluator")

    with pytest.raises(ApiError) as exc:
        validate_registration(data)

    assert exc.value.code == ErrorCode.MISSING_DATA
    assert exc.value.status_code == 400
    details = " ".join(exc.value.details)
    assert "Name" in details
    assert "Code" in details
    assert "Evaluator type" in details
    assert "Document type" in details


def test_registration_bad_email_fails_first():
    data = RegisterRequest(name="", email="not-an-email", password="Secret123", role="child")

    with pytest.raises(ApiError) as exc:
        validate_registration(data)

    assert exc.value.code == ErrorCode.INVALID_EMAIL


def test_registration_bad_password():
    data = RegisterRequest(name="Ana", email="ana@example.com", password="weak", role="admin")

    with pytest.raises(ApiError) as exc:
        validate_registration(data)

    assert exc.value.code == ErrorCode.INVALID_PASSWORD


def test_registration_child_ranges():
    data = RegisterRequest(
        name="Leo",
        email="leo@example.com",
        password="Secret123",
        role="child",
        age=9,
        grade=3,
        school="Colegio",
        shift="night",
    )

    with pytest.raises(ApiError) as exc:
        validate_registration(data)

    assert exc.value.code == ErrorCode.MISSING_DATA
    assert len(exc.value.details) == 3


def test_registration_accepts_complete_child():
    data = RegisterRequest(
        name="Leo",
        email="leo@example.com",
        password="Secret123",
        role="child",
        age=5,
        grade=-1,
        school="Colegio",
        shift="continuous",
    )
    validate_registration(data)


def test_login_requires_both_fields():
    with pytest.raises(ApiError) as exc:
        validate_login(LoginRequest(email="ana@example.com"))
    assert exc.value.code == ErrorCode.MISSING_CREDENTIALS


def test_child_assignment_requires_child_fields():
    data = AssignChildRequest(name="Leo", email="leo@example.com", password="Secret123")

    with pytest.raises(ApiError) as exc:
        validate_child_assignment(data)

    assert exc.value.code == ErrorCode.MISSING_DATA
    assert len(exc.value.details) == 4


def test_progress_rejects_negative_and_missing():
    data = ProgressRequest(score=-1, time=10, hits=2)

    with pytest.raises(ApiError) as exc:
        validate_progress(data)

    assert exc.value.code == ErrorCode.MISSING_DATA
    assert len(exc.value.details) == 3


def test_progress_accepts_zeroes():
    validate_progress(ProgressRequest(score=0, time=0, hits=0, misses=0, completed=False))


@pytest.mark.parametrize("child_id", [None, 0, -4])
def test_survey_requires_positive_child_id(child_id):
    with pytest.raises(ApiError) as exc:
        validate_survey(SurveyCreateRequest(child_id=child_id))
    assert exc.value.code == ErrorCode.MISSING_DATA


def test_password_change():
    validate_password_change("NewPass1")
    with pytest.raises(ApiError) as exc:
        validate_password_change("short")
    assert exc.value.code == ErrorCode.INVALID_PASSWORD


def test_user_patch_required_fields():
    with pytest.raises(ApiError) as exc:
        validate_user_patch(UserPatch(name="Ana", email=None), require_all=True)
    assert exc.value.code == ErrorCode.MISSING_DATA

    # Partial patches only check what was sent
    validate_user_patch(UserPatch(name="Ana"))


def test_child_patch_checks_sent_fields_only():
    validate_child_patch(ChildPatch(school="Otro Colegio"))

    with pytest.raises(ApiError) as exc:
        validate_child_patch(ChildPatch(age=4))
    assert exc.value.code == ErrorCode.MISSING_DATA


def test_survey_patch_accepts_valid_counters():
    validate_survey_patch(SurveyPatch(attempts=0, session_number=1, notes=""))
    validate_survey_patch(SurveyPatch(notes="Follow-up"))


@pytest.mark.parametrize(
    "fields",
    [
        {"notes": None},
        {"attempts": None},
        {"session_number": None},
        {"attempts": -1},
        {"session_number": 0},
    ],
)
def test_survey_patch_rejects_null_and_out_of_range(fields):
    with pytest.raises(ApiError) as exc:
        validate_survey_patch(SurveyPatch(**fields))
    assert exc.value.code == ErrorCode.MISSING_DATA
    assert len(exc.value.details) == 1
