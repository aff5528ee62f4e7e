"""
Learning Content Router
Public catalog: categories, instructors, courses, reviews and learning paths
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from config import settings
from models import CourseLevel, User
from schemas.validation import ReviewCreate
from storage import Storage, get_storage
from utils.auth_dependencies import get_current_user, get_current_user_optional
from utils.course_assembly import (
    build_course_detail,
    build_course_summary,
    build_learning_path,
    serialize_category,
    serialize_instructor,
    serialize_review,
)
from utils.error_handling import ForbiddenError, ValidationError, validate_resource_exists
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("routes.learning")

router = APIRouter()


def parse_level(level: Optional[str]) -> Optional[CourseLevel]:
    """Map the ``level`` query value to a CourseLevel; "all" or empty means no filter"""
    if level is None or not level.strip() or level.strip().lower() == "all":
        return None
    try:
        return CourseLevel(level.strip().lower())
    except ValueError:
        allowed = ", ".join(["all"] + [lvl.value for lvl in CourseLevel])
        raise ValidationError(f"Invalid level '{level}'. Expected one of: {allowed}", field="level")


def _user_id(user: Optional[User]) -> Optional[int]:
    return user.id if user is not None else None


# =============================================================================
# CATALOG
# =============================================================================


@router.get("/categories", summary="List course categories")
async def get_categories(storage: Storage = Depends(get_storage)):
    return [serialize_category(category) for category in storage.get_categories()]


@router.get("/instructors", summary="List instructors")
async def get_instructors(storage: Storage = Depends(get_storage)):
    return [serialize_instructor(instructor) for instructor in storage.get_instructors()]


@router.get("/courses", summary="List and filter courses")
async def get_courses(
    category_id: Optional[int] = Query(None, alias="categoryId", gt=0),
    level: Optional[str] = Query(None, description="beginner, intermediate, advanced or all"),
    search: Optional[str] = Query(None, max_length=200, description="Case-insensitive title substring"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: Optional[int] = Query(None, ge=0),
    current_user: Optional[User] = Depends(get_current_user_optional),
    storage: Storage = Depends(get_storage),
):
    """
    ## List Courses

    Filters combine with AND: category membership, level (skipped for "all")
    and title substring. Results are newest first; ``limit``/``offset`` are
    optional.
    """
    courses = storage.list_courses(
        category_id=category_id,
        level=parse_level(level),
        search=search,
        limit=limit,
        offset=offset,
    )
    user_id = _user_id(current_user)
    return [build_course_summary(storage, course, user_id) for course in courses]


# Declared before /courses/{course_id} so "recommended" is not parsed as an id
@router.get("/courses/recommended", summary="Personalized course feed")
async def get_recommended_courses(
    limit: Optional[int] = Query(None, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    feed = storage.get_recommended_courses(current_user.id, limit or settings.RECOMMENDED_COURSES_LIMIT)

    in_progress = []
    for course, percentage in feed["in_progress"]:
        entry = build_course_summary(storage, course, current_user.id)
        entry["progress"] = percentage
        in_progress.append(entry)

    return {
        "inProgress": in_progress,
        "recommended": [build_course_summary(storage, course, current_user.id) for course in feed["recommended"]],
    }


@router.get("/courses/{course_id}", summary="Course detail")
async def get_course(
    course_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_current_user_optional),
    storage: Storage = Depends(get_storage),
):
    course = validate_resource_exists(storage.get_course(course_id), "Course", course_id)
    return build_course_detail(storage, course, _user_id(current_user))


@router.get("/courses/{course_id}/reviews", summary="Course reviews")
async def get_course_reviews(course_id: int = Path(..., gt=0), storage: Storage = Depends(get_storage)):
    validate_resource_exists(storage.get_course(course_id), "Course", course_id)
    return [serialize_review(r, storage.get_user(r.user_id)) for r in storage.get_course_reviews(course_id)]


@router.post("/courses/{course_id}/reviews", status_code=status.HTTP_201_CREATED, summary="Review a course")
async def create_course_review(
    payload: ReviewCreate,
    course_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    validate_resource_exists(storage.get_course(course_id), "Course", course_id)
    if not storage.is_enrolled(current_user.id, course_id):
        raise ForbiddenError("Enroll in the course before reviewing it")

    review = storage.add_review(current_user.id, course_id, payload.rating, payload.comment)
    logger.info(
        f"Review added to course {course_id}",
        category=LogCategory.BUSINESS,
        user_id=current_user.id,
        course_id=course_id,
        extra={"rating": payload.rating},
    )
    return serialize_review(review, current_user)


# =============================================================================
# LEARNING PATHS
# =============================================================================


@router.get("/learning-paths", summary="List learning paths")
async def get_learning_paths(
    current_user: Optional[User] = Depends(get_current_user_optional),
    storage: Storage = Depends(get_storage),
):
    user_id = _user_id(current_user)
    return [build_learning_path(storage, path, user_id) for path in storage.get_learning_paths()]


@router.get("/learning-paths/{path_id}", summary="Learning path detail")
async def get_learning_path(
    path_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_current_user_optional),
    storage: Storage = Depends(get_storage),
):
    path = validate_resource_exists(storage.get_learning_path(path_id), "Learning path", path_id)
    return build_learning_path(storage, path, _user_id(current_user))
