"""
Student Router
Enrollment, lesson access and progress tracking for the signed-in user
"""

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse

from models import User
from schemas.validation import EnrollmentCreate
from storage import Storage, get_storage
from utils.auth_dependencies import get_current_user
from utils.course_assembly import (
    build_course_summary,
    build_lesson_detail,
    serialize_enrollment,
    serialize_progress,
)
from utils.error_handling import ForbiddenError, validate_resource_exists
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("routes.student")

router = APIRouter()


def _resolve_lesson_course(storage: Storage, lesson_id: int):
    lesson = validate_resource_exists(storage.get_lesson(lesson_id), "Lesson", lesson_id)
    module = validate_resource_exists(storage.get_module(lesson.module_id), "Module", lesson.module_id)
    return lesson, module.course_id


@router.get("/lessons/{lesson_id}", summary="Lesson content for an enrolled student")
async def get_lesson(
    lesson_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    lesson, course_id = _resolve_lesson_course(storage, lesson_id)
    if not storage.is_enrolled(current_user.id, course_id):
        logger.warning(
            f"Lesson {lesson_id} requested without enrollment",
            category=LogCategory.SECURITY,
            user_id=current_user.id,
            lesson_id=lesson_id,
            course_id=course_id,
        )
        raise ForbiddenError("You must be enrolled in this course to view its lessons")

    return build_lesson_detail(storage, lesson, course_id, current_user.id)


@router.post("/lessons/{lesson_id}/complete", summary="Mark a lesson complete")
async def complete_lesson(
    lesson_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    Idempotent: completing a lesson twice returns the original progress row.
    Achievement updates triggered by the completion never fail the request.
    """
    progress = storage.mark_lesson_complete(current_user.id, lesson_id)
    return {
        "success": True,
        "progress": serialize_progress(progress),
        "courseProgress": storage.calculate_course_progress(current_user.id, progress.course_id),
    }


@router.post("/enrollments", summary="Enroll in a course")
async def create_enrollment(
    payload: EnrollmentCreate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    already_enrolled = storage.is_enrolled(current_user.id, payload.courseId)
    enrollment = storage.enroll_user(current_user.id, payload.courseId)
    return JSONResponse(status_code=200 if already_enrolled else 201, content=serialize_enrollment(enrollment))


@router.get("/enrollments", summary="Courses the current user is enrolled in")
async def get_enrollments(current_user: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    results = []
    for enrollment in storage.get_user_enrollments(current_user.id):
        course = storage.get_course(enrollment.course_id)
        if course is None:
            continue
        entry = serialize_enrollment(enrollment)
        entry["course"] = build_course_summary(storage, course, current_user.id)
        entry["progress"] = storage.calculate_course_progress(current_user.id, course.id)
        results.append(entry)
    return results
