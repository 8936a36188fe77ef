"""
SQLAlchemy models. Import here so Alembic and app can use them.
"""
from app.models.user import User
from app.models.course import Course
from app.models.course_material import CourseMaterial
from app.models.extracted_text import ExtractedText
from app.models.quiz import Quiz, QuizAttempt

__all__ = ["User", "Course", "CourseMaterial", "ExtractedText", "Quiz", "QuizAttempt"]
