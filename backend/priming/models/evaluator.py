from enum import Enum
from sqlalchemy import String, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from priming.core.database import Base


class EvaluatorType(str, Enum):
    STUDENT = "Student"
    TEACHER = "Teacher"
    GRADUATE = "Graduate"


class Evaluator(Base):
    __tablename__ = "evaluators"
    __table_args__ = (UniqueConstraint("code", name="uq_evaluators_code"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    evaluator_type: Mapped[EvaluatorType] = mapped_column(
        SQLEnum(EvaluatorType), nullable=False
    )
    document_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="evaluator")
    surveys: Mapped[list["Survey"]] = relationship(
        "Survey", back_populates="evaluator", cascade="all, delete-orphan"
    )
