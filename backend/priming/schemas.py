"""
Request and patch schemas shared by several routers.

Request fields are optional on purpose: presence and range checks live in
``priming.services.validation`` so that every violation is reported at once.
Patch models list the fields a client may change; ``apply`` copies only the
fields that were actually sent onto the ORM object.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, StrictBool, field_validator

from priming.models.child import Child, Shift
from priming.models.evaluator import Evaluator, EvaluatorType
from priming.models.survey import Survey, SurveyResult
from priming.models.user import User


class ChildFields(BaseModel):
    age: int | None = None
    grade: int | None = None
    school: str | None = None
    shift: str | None = None


class RegisterRequest(ChildFields):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    # Evaluator fields
    code: str | None = None
    evaluator_type: str | None = None
    document_type: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class AssignChildRequest(ChildFields):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class PasswordChangeRequest(BaseModel):
    password: str | None = None


class ProgressRequest(BaseModel):
    score: int | None = None
    time: int | None = None
    hits: int | None = None
    misses: int | None = None
    completed: StrictBool | None = None


class SurveyCreateRequest(BaseModel):
    child_id: int | None = None
    notes: str | None = None


# Patches


class _Patch(BaseModel):
    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)

    def is_empty(self) -> bool:
        return not self.model_fields_set

    def _apply(self, target) -> None:
        for field, value in self.changes().items():
            setattr(target, field, value)


class UserPatch(_Patch):
    name: str | None = None
    email: str | None = None

    def apply(self, user: User) -> None:
        self._apply(user)


class EvaluatorPatch(_Patch):
    code: str | None = None
    evaluator_type: str | None = None
    document_type: str | None = None

    def apply(self, evaluator: Evaluator) -> None:
        changes = self.changes()
        if changes.get("evaluator_type") is not None:
            changes["evaluator_type"] = EvaluatorType(changes["evaluator_type"])
        for field, value in changes.items():
            setattr(evaluator, field, value)


class ChildPatch(_Patch):
    age: int | None = None
    grade: int | None = None
    school: str | None = None
    shift: str | None = None

    def apply(self, child: Child) -> None:
        changes = self.changes()
        if changes.get("shift") is not None:
            changes["shift"] = Shift(changes["shift"])
        for field, value in changes.items():
            setattr(child, field, value)


class SurveyPatch(_Patch):
    attempts: int | None = None
    session_number: int | None = None
    notes: str | None = None

    def apply(self, survey: Survey) -> None:
        self._apply(survey)


class SurveyResultFields(_Patch):
    mental_exam_summary: str | None = None
    clinical_history: str | None = None
    learning_diagnosis: str | None = None
    academic_problems: str | None = None
    literacy_problems: str | None = None
    pretest_evaluation: str | None = None
    posttest_evaluation: str | None = None
    session_notes: str | None = None
    behavioral_observation: str | None = None
    recommendations: str | None = None
    achievement_indicators: str | None = None
    game_type: str | None = None
    difficulty: str | None = None
    current_level: int | None = None
    accumulated_score: int | None = None
    last_played: datetime | None = None

    @field_validator("last_played")
    @classmethod
    def _naive_utc(cls, v: datetime | None) -> datetime | None:
        # Columns are timezone-naive UTC
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    def apply(self, result: SurveyResult) -> None:
        self._apply(result)


class ProfileUpdateRequest(ChildFields):
    name: str | None = None
    email: str | None = None
    code: str | None = None
    evaluator_type: str | None = None

    def user_patch(self) -> UserPatch:
        return UserPatch(name=self.name, email=self.email)

    def evaluator_patch(self) -> EvaluatorPatch:
        return EvaluatorPatch(**self.model_dump(include={"code", "evaluator_type"}, exclude_unset=True))

    def child_patch(self) -> ChildPatch:
        return ChildPatch(
            **self.model_dump(include={"age", "grade", "school", "shift"}, exclude_unset=True)
        )


class AdminUserUpdateRequest(ProfileUpdateRequest):
    document_type: str | None = None

    def user_patch(self) -> UserPatch:
        return UserPatch(**self.model_dump(include={"name", "email"}, exclude_unset=True))

    def evaluator_patch(self) -> EvaluatorPatch:
        return EvaluatorPatch(
            **self.model_dump(include={"code", "evaluator_type", "document_type"}, exclude_unset=True)
        )
