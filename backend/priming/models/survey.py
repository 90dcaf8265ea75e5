from datetime import datetime
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from priming.core.database import Base


class Survey(Base):
    """One evaluator's assessment session with one child."""

    __tablename__ = "surveys"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    child_id: Mapped[int] = mapped_column(
        ForeignKey("children.id", ondelete="CASCADE"), index=True, nullable=False
    )
    evaluator_id: Mapped[int] = mapped_column(
        ForeignKey("evaluators.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    session_number: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # Relationships
    child: Mapped["Child"] = relationship("Child", back_populates="surveys")
    evaluator: Mapped["Evaluator"] = relationship("Evaluator", back_populates="surveys")
    results: Mapped[list["SurveyResult"]] = relationship(
        "SurveyResult",
        back_populates="survey",
        cascade="all, delete-orphan",
        order_by="SurveyResult.id",
    )


class SurveyResult(Base):
    """A clinical/observational record. Each submission is a new row."""

    __tablename__ = "survey_results"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    survey_id: Mapped[int] = mapped_column(
        ForeignKey("surveys.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    mental_exam_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    clinical_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    learning_diagnosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    academic_problems: Mapped[str | None] = mapped_column(Text, nullable=True)
    literacy_problems: Mapped[str | None] = mapped_column(Text, nullable=True)
    pretest_evaluation: Mapped[str | None] = mapped_column(Text, nullable=True)
    posttest_evaluation: Mapped[str | None] = mapped_column(Text, nullable=True)
    session_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    behavioral_observation: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommendations: Mapped[str | None] = mapped_column(Text, nullable=True)
    achievement_indicators: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Game telemetry
    game_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(50), nullable=True)
    current_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    accumulated_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_played: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    survey: Mapped["Survey"] = relationship("Survey", back_populates="results")
