"""
Courses API: create, list, get. Scoped by current user.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.course import Course
from app.models.user import User
from app.schemas.course import CourseCreateRequest, CourseListResponse, CourseResponse
from app.api.deps import get_current_user
from app.services.repositories import CourseRepository

router = APIRouter(prefix="/courses", tags=["courses"])
logger = logging.getLogger(__name__)


def _course_to_response(c: Course) -> CourseResponse:
    return CourseResponse(id=str(c.id), user_id=str(c.user_id), name=c.name, created_at=c.created_at)


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    course = CourseRepository(db).create_course(current_user.id, data.name)
    logger.info("Course created id=%s user_id=%s", course.id, current_user.id)
    return _course_to_response(course)


@router.get("", response_model=CourseListResponse)
def list_courses(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    courses = CourseRepository(db).list_courses(current_user.id)
    return CourseListResponse(items=[_course_to_response(c) for c in courses], total=len(courses))


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(
    course_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    course = CourseRepository(db).get_course(course_id, current_user.id)
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return _course_to_response(course)
