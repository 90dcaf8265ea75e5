"""
Input validation.

Pure checks run before any database access. Missing fields and out-of-range
values are collected and reported together as ``MISSING_DATA``; a malformed
email or password fails immediately with its own code.
"""

import re

from priming.core.errors import ErrorCode, bad_request
from priming.models.child import Shift
from priming.models.evaluator import EvaluatorType
from priming.models.user import Role
from priming.schemas import (
    AssignChildRequest,
    ChildFields,
    ChildPatch,
    EvaluatorPatch,
    LoginRequest,
    ProgressRequest,
    RegisterRequest,
    SurveyCreateRequest,
    SurveyPatch,
    UserPatch,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6
MIN_AGE, MAX_AGE = 5, 7
MIN_GRADE, MAX_GRADE = -1, 2

ROLES = [r.value for r in Role]
SHIFTS = [s.value for s in Shift]
EVALUATOR_TYPES = [t.value for t in EvaluatorType]

EMAIL_FORMAT_MESSAGE = "The email format is not valid"
PASSWORD_FORMAT_MESSAGE = (
    "The password must have at least 6 characters, one uppercase letter and one number"
)


def valid_email(value) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    return EMAIL_RE.fullmatch(value) is not None


def valid_password(value) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    has_upper = any("A" <= c <= "Z" for c in value)
    has_digit = any("0" <= c <= "9" for c in value)
    return has_upper and has_digit and len(value.strip()) >= MIN_PASSWORD_LENGTH


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_credentials(email, password, errors: list[str]) -> None:
    """Presence goes to ``errors``; a bad format raises straight away."""
    if _blank(email):
        errors.append("Email is required")
    elif not valid_email(email):
        raise bad_request(EMAIL_FORMAT_MESSAGE, ErrorCode.INVALID_EMAIL)

    if _blank(password):
        errors.append("Password is required")
    elif not valid_password(password):
        raise bad_request(PASSWORD_FORMAT_MESSAGE, ErrorCode.INVALID_PASSWORD)


def _check_child_fields(data: ChildFields, errors: list[str]) -> None:
    if data.age is None or not MIN_AGE <= data.age <= MAX_AGE:
        errors.append(f"Age must be between {MIN_AGE} and {MAX_AGE}")
    if data.grade is None or not MIN_GRADE <= data.grade <= MAX_GRADE:
        errors.append(f"Grade must be between {MIN_GRADE} (preschool) and {MAX_GRADE}")
    if _blank(data.school):
        errors.append("School name is required")
    if data.shift not in SHIFTS:
        errors.append(f"Shift must be one of: {', '.join(SHIFTS)}")


def _raise_if_any(errors: list[str], message: str) -> None:
    if errors:
        raise bad_request(message, ErrorCode.MISSING_DATA, errors)


def validate_registration(data: RegisterRequest) -> None:
    errors: list[str] = []

    if _blank(data.name):
        errors.append("Name is required")

    _check_credentials(data.email, data.password, errors)

    if data.role not in ROLES:
        errors.append(f"User role is required and must be one of: {', '.join(ROLES)}")

    if data.role == Role.EVALUATOR.value:
        if _blank(data.code):
            errors.append("Code is required for evaluators")
        if data.evaluator_type not in EVALUATOR_TYPES:
            errors.append(f"Evaluator type must be one of: {', '.join(EVALUATOR_TYPES)}")
        if _blank(data.document_type):
            errors.append("Document type is required for evaluators")

    if data.role == Role.CHILD.value:
        _check_child_fields(data, errors)

    _raise_if_any(errors, "Incomplete or invalid data")


def validate_login(data: LoginRequest) -> None:
    if _blank(data.email) or _blank(data.password):
        raise bad_request(
            "Email and password are required",
            ErrorCode.MISSING_CREDENTIALS,
        )


def validate_child_assignment(data: AssignChildRequest) -> None:
    errors: list[str] = []

    if _blank(data.name):
        errors.append("Name is required")

    _check_credentials(data.email, data.password, errors)
    _check_child_fields(data, errors)

    _raise_if_any(errors, "Required data is missing")


def validate_progress(data: ProgressRequest) -> None:
    errors: list[str] = []

    for field, label in (
        ("score", "Score"),
        ("time", "Time"),
        ("hits", "Hits"),
        ("misses", "Misses"),
    ):
        value = getattr(data, field)
        if value is None or value < 0:
            errors.append(f"{label} must be a non-negative number")

    if data.completed is None:
        errors.append("Completed must be a boolean")

    _raise_if_any(errors, "Invalid progress data")


def validate_survey(data: SurveyCreateRequest) -> None:
    if data.child_id is None or data.child_id <= 0:
        _raise_if_any(
            ["Child id is required and must be a positive number"],
            "Invalid survey data",
        )


def validate_password_change(password) -> None:
    if not valid_password(password):
        raise bad_request(PASSWORD_FORMAT_MESSAGE, ErrorCode.INVALID_PASSWORD)


def validate_user_patch(patch: UserPatch, require_all: bool = False) -> None:
    """Check the name/email part of a profile update."""
    errors: list[str] = []
    changes = patch.changes()

    if require_all and (_blank(patch.name) or _blank(patch.email)):
        raise bad_request("Name and email are required", ErrorCode.MISSING_DATA)

    if "name" in changes and _blank(changes["name"]):
        errors.append("Name cannot be empty")
    if "email" in changes:
        if _blank(changes["email"]):
            errors.append("Email cannot be empty")
        elif not valid_email(changes["email"]):
            raise bad_request(EMAIL_FORMAT_MESSAGE, ErrorCode.INVALID_EMAIL)

    _raise_if_any(errors, "Incomplete or invalid data")


def validate_child_patch(patch: ChildPatch) -> None:
    errors: list[str] = []
    changes = patch.changes()

    if "age" in changes and (changes["age"] is None or not MIN_AGE <= changes["age"] <= MAX_AGE):
        errors.append(f"Age must be between {MIN_AGE} and {MAX_AGE}")
    if "grade" in changes and (
        changes["grade"] is None or not MIN_GRADE <= changes["grade"] <= MAX_GRADE
    ):
        errors.append(f"Grade must be between {MIN_GRADE} (preschool) and {MAX_GRADE}")
    if "school" in changes and _blank(changes["school"]):
        errors.append("School name cannot be empty")
    if "shift" in changes and changes["shift"] not in SHIFTS:
        errors.append(f"Shift must be one of: {', '.join(SHIFTS)}")

    _raise_if_any(errors, "Incomplete or invalid data")


def validate_evaluator_patch(patch: EvaluatorPatch) -> None:
    errors: list[str] = []
    changes = patch.changes()

    if "code" in changes and _blank(changes["code"]):
        errors.append("Code cannot be empty")
    if "evaluator_type" in changes and changes["evaluator_type"] not in EVALUATOR_TYPES:
        errors.append(f"Evaluator type must be one of: {', '.join(EVALUATOR_TYPES)}")

    _raise_if_any(errors, "Incomplete or invalid data")


def validate_survey_patch(patch: SurveyPatch) -> None:
    errors: list[str] = []
    changes = patch.changes()

    if "attempts" in changes and (changes["attempts"] is None or changes["attempts"] < 0):
        errors.append("Attempts must be a non-negative number")
    if "session_number" in changes and (
        changes["session_number"] is None or changes["session_number"] < 1
    ):
        errors.append("Session number must be a positive number")
    if "notes" in changes and changes["notes"] is None:
        errors.append("Notes cannot be null")

    _raise_if_any(errors, "Invalid survey data")
