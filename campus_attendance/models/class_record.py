from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SQLEnum, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, validates
from datetime import date
from typing import Optional
import enum

from campus_attendance.core.database import Base


class Campus(str, enum.Enum):
    BOYS = "Boys"
    GIRLS = "Girls"


class Grade(str, enum.Enum):
    ELEVENTH = "11th"
    TWELFTH = "12th"


# Floor 1: 11th Boys, Floor 2: 12th Boys, Floor 3: 11th Girls, Floor 4: 12th Girls
FLOOR_NUMBERS = {
    (Campus.BOYS, Grade.ELEVENTH): 1,
    (Campus.BOYS, Grade.TWELFTH): 2,
    (Campus.GIRLS, Grade.ELEVENTH): 3,
    (Campus.GIRLS, Grade.TWELFTH): 4,
}

FLOOR_DESCRIPTIONS = {
    1: "11th Boys Floor",
    2: "12th Boys Floor",
    3: "11th Girls Floor",
    4: "12th Girls Floor",
}

# Breakdown labels only distinguish grades; campus is a separate dimension there
GRADE_FLOOR_LABELS = {
    Grade.ELEVENTH: "1st",
    Grade.TWELFTH: "2nd",
}


def floor_of(campus, grade) -> int:
    """Physical floor number for a (campus, grade) pair."""
    return FLOOR_NUMBERS[(Campus(campus), Grade(grade))]


def floor_label(grade) -> str:
    """Two-way floor label ("1st"/"2nd") used by the floor breakdown."""
    return GRADE_FLOOR_LABELS[Grade(grade)]


def grade_for_floor_label(label: str) -> Grade:
    """Inverse of floor_label; raises ValueError for labels it does not know."""
    for grade, known_label in GRADE_FLOOR_LABELS.items():
        if label == known_label:
            return grade
    raise ValueError(f"Unknown floor label: {label}")


def current_academic_year(today: Optional[date] = None) -> str:
    year = (today or date.today()).year
    return f"{year}-{year + 1}"


class ClassRecord(Base):
    """A class section; campus and grade decide which floor it sits on."""
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    campus = Column(SQLEnum(Campus), nullable=False)
    grade = Column(SQLEnum(Grade), nullable=False)
    floor = Column(Integer, nullable=False)
    program = Column(String(100), nullable=True)

    max_students = Column(Integer, default=50)
    academic_year = Column(String(20), nullable=False, default=current_academic_year)
    is_active = Column(Boolean, default=True)

    # Timestamps
    created_on = Column(DateTime(timezone=True), server_default=func.now())
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    attendance_records = relationship("AttendanceRecord", back_populates="class_record")

    __table_args__ = (
        Index('idx_class_campus_grade_program', 'campus', 'grade', 'program'),
    )

    @validates("campus", "grade")
    def _sync_floor(self, key, value):
        campus = value if key == "campus" else self.campus
        grade = value if key == "grade" else self.grade
        if campus is not None and grade is not None:
            self.floor = floor_of(campus, grade)
        return value

    @property
    def floor_description(self) -> str:
        return FLOOR_DESCRIPTIONS.get(self.floor, "Unknown Floor")

    @property
    def full_name(self) -> str:
        return f"{Grade(self.grade).value} {self.program} - {self.name} ({Campus(self.campus).value} - Floor {self.floor})"
