from enum import Enum
from sqlalchemy import String, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from priming.core.database import Base


class Shift(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    CONTINUOUS = "continuous"


class Child(Base):
    __tablename__ = "children"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    # -1 is preschool
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    school: Mapped[str] = mapped_column(String(200), nullable=False)
    shift: Mapped[Shift] = mapped_column(SQLEnum(Shift), nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="child")
    surveys: Mapped[list["Survey"]] = relationship(
        "Survey", back_populates="child", cascade="all, delete-orphan"
    )
