from datetime import datetime
from enum import Enum
from sqlalchemy import String, DateTime, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from priming.core.database import Base


class Role(str, Enum):
    ADMIN = "admin"
    EVALUATOR = "evaluator"
    CHILD = "child"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(SQLEnum(Role), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    # Relationships
    evaluator: Mapped["Evaluator"] = relationship(
        "Evaluator", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    child: Mapped["Child"] = relationship(
        "Child", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    progress: Mapped[list["GameProgress"]] = relationship(
        "GameProgress", back_populates="user", cascade="all, delete-orphan"
    )
