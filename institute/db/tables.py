"""SQLAlchemy table definitions for the self-hosted table store.

Column names match the hosted backend's tables one-to-one, so the same
row dictionaries flow through either store.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from institute.db.engine import Base


class ProfileRow(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default="student"
    )  # student|admin


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    outline: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructor: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    instructor_bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    level: Mapped[str] = mapped_column(
        String(16), nullable=False, default="Beginner"
    )  # Beginner|Intermediate|Advanced
    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=[])
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature_image: Mapped[str | None] = mapped_column(Text, nullable=True)


class EnrollmentRow(Base):
    __tablename__ = "enrollments"

    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id"), primary_key=True
    )
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="registered"
    )  # registered|pending|completed
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SiteSettingRow(Base):
    __tablename__ = "site_settings"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[dict] = mapped_column(JSONB, nullable=False, default={})


class VideoRow(Base):
    __tablename__ = "videos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    duration: Mapped[str] = mapped_column(String(64), nullable=False, default="Unknown")
    type: Mapped[str] = mapped_column(String(64), nullable=False, default="Lecture")
    level: Mapped[str] = mapped_column(String(32), nullable=False, default="Beginner")
    category: Mapped[str] = mapped_column(String(128), nullable=False, default="General")
    url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


TABLES = {
    "profiles": ProfileRow,
    "courses": CourseRow,
    "enrollments": EnrollmentRow,
    "site_settings": SiteSettingRow,
    "videos": VideoRow,
}
