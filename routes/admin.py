"""
Admin Course Management Router
Course upload (image + optional content file), edits and deletion
"""

import os
import shutil
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status

from config import settings
from models import CourseLevel, User
from schemas.validation import CourseUpdate
from storage import Storage, get_storage
from utils.auth_dependencies import require_admin
from utils.content_parser import parse_course_content
from utils.course_assembly import build_admin_course, build_course_detail
from utils.error_handling import AppException, ValidationError, log_operation_success, validate_resource_exists
from utils.structured_logging import get_logger, LogCategory

router = APIRouter()
logger = get_logger("routes.admin")

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"}
PUBLIC_UPLOAD_PREFIX = "/uploads/"


def ensure_upload_dir() -> str:
    """Ensure upload directory exists (lazy initialization)"""
    try:
        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create upload directory: {e}", category=LogCategory.UPLOAD)
        raise AppException("Upload storage unavailable")
    return settings.UPLOAD_DIR


def _file_size(upload: UploadFile) -> int:
    upload.file.seek(0, 2)  # Seek to end
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def _check_size(upload: UploadFile, field: str) -> None:
    size = _file_size(upload)
    if size > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(
            f"File size ({size} bytes) exceeds maximum allowed ({settings.MAX_UPLOAD_SIZE} bytes)", field=field
        )


def validate_image(upload: UploadFile) -> str:
    """Check type and size of the course image, returning its file extension"""
    extension = os.path.splitext(upload.filename or "")[1].lower()
    content_type = (upload.content_type or "").lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS or not content_type.startswith("image/"):
        raise ValidationError(
            f"Course image must be one of: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}",
            field="courseImageFile",
        )
    _check_size(upload, "courseImageFile")
    return extension


def save_image(upload: UploadFile, extension: str) -> str:
    """Write the image under the upload directory and return its public path"""
    filename = f"course_{uuid.uuid4().hex}{extension}"
    file_path = os.path.join(ensure_upload_dir(), filename)
    try:
        with open(file_path, "wb") as buffer:
            shutil.copyfileobj(upload.file, buffer)
    except OSError as e:
        logger.error(f"Failed to save course image: {e}", category=LogCategory.UPLOAD)
        raise AppException("Failed to store uploaded file")
    return f"{PUBLIC_UPLOAD_PREFIX}{filename}"


def remove_image(image_url: Optional[str]) -> None:
    if not image_url or not image_url.startswith(PUBLIC_UPLOAD_PREFIX):
        return
    file_path = os.path.join(settings.UPLOAD_DIR, os.path.basename(image_url))
    try:
        if os.path.exists(file_path):
            os.remove(file_path)
    except OSError as e:
        logger.warning(f"Could not remove course image {file_path}: {e}", category=LogCategory.UPLOAD)


def parse_category_ids(raw: Optional[str]) -> List[int]:
    """Parse a comma-separated id list such as "1, 3,4" """
    if not raw or not raw.strip():
        return []
    try:
        return [int(part) for part in (p.strip() for p in raw.split(",")) if part]
    except ValueError:
        raise ValidationError("categoryIds must be a comma-separated list of integers", field="categoryIds")


def parse_course_level(level: Optional[str]) -> CourseLevel:
    if not level:
        return CourseLevel.BEGINNER
    try:
        return CourseLevel(level.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid level '{level}'. Expected one of: {', '.join(l.value for l in CourseLevel)}", field="level"
        )


def _check_references(storage: Storage, instructor_id: Optional[int], category_ids: List[int]) -> None:
    if instructor_id is not None and storage.get_instructor(instructor_id) is None:
        raise ValidationError(f"Instructor {instructor_id} does not exist", field="instructorId")
    missing = [cid for cid in category_ids if storage.get_category(cid) is None]
    if missing:
        raise ValidationError(f"Unknown category ids: {', '.join(map(str, missing))}", field="categoryIds")


@router.get("/admin/courses", summary="All courses with structure counts")
async def list_admin_courses(admin: User = Depends(require_admin), storage: Storage = Depends(get_storage)):
    return [build_admin_course(storage, course) for course in storage.list_courses()]


@router.post("/admin/courses/upload", status_code=status.HTTP_201_CREATED, summary="Create a course from uploads")
async def upload_course(
    title: str = Form(..., min_length=1, max_length=200),
    description: Optional[str] = Form(None),
    level: Optional[str] = Form(None),
    price: int = Form(0, ge=0),
    originalPrice: Optional[int] = Form(None, ge=0),
    categoryIds: Optional[str] = Form(None),
    instructorId: Optional[int] = Form(None),
    duration: Optional[str] = Form(None),
    courseImageFile: UploadFile = File(...),
    courseContentFile: Optional[UploadFile] = File(None),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    """
    ## Upload Course

    Multipart form with the course fields, a required image and an optional
    content file (JSON or ``#``/``##`` heading-delimited text) describing
    modules and lessons.
    """
    if not title.strip():
        raise ValidationError("Title cannot be empty", field="title")

    course_level = parse_course_level(level)
    category_ids = parse_category_ids(categoryIds)
    _check_references(storage, instructorId, category_ids)
    extension = validate_image(courseImageFile)

    modules = []
    if courseContentFile is not None and courseContentFile.filename:
        _check_size(courseContentFile, "courseContentFile")
        modules = parse_course_content(await courseContentFile.read(), courseContentFile.filename)

    image_url = save_image(courseImageFile, extension)
    try:
        course = storage.create_course_with_content(
            category_ids,
            modules,
            title=title.strip(),
            description=description,
            image_url=image_url,
            level=course_level,
            duration=duration,
            price=price,
            original_price=originalPrice,
            instructor_id=instructorId,
        )
    except Exception:
        remove_image(image_url)
        raise

    log_operation_success(
        "course upload",
        f"course {course.id} with {len(modules)} modules",
        user_id=admin.id,
    )
    return build_course_detail(storage, course, admin.id)


@router.put("/admin/courses/{course_id}", summary="Edit course fields and categories")
async def update_course(
    payload: CourseUpdate,
    course_id: int = Path(..., gt=0),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    validate_resource_exists(storage.get_course(course_id), "Course", course_id)

    updates = payload.model_dump(exclude_unset=True)
    category_ids = updates.pop("categoryIds", None)
    _check_references(storage, updates.get("instructorId"), category_ids or [])

    column_names = {
        "title": "title",
        "description": "description",
        "level": "level",
        "duration": "duration",
        "price": "price",
        "originalPrice": "original_price",
        "instructorId": "instructor_id",
        "imageUrl": "image_url",
    }
    fields = {column_names[key]: value for key, value in updates.items() if key in column_names}
    if fields:
        storage.update_course(course_id, **fields)
    if category_ids is not None:
        storage.set_course_categories(course_id, category_ids)

    log_operation_success("course update", f"course {course_id}", user_id=admin.id)
    return build_admin_course(storage, storage.get_course(course_id))


@router.delete("/admin/courses/{course_id}", summary="Delete a course and its content")
async def delete_course(
    course_id: int = Path(..., gt=0),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    course = validate_resource_exists(storage.get_course(course_id), "Course", course_id)
    image_url = course.image_url

    if not storage.delete_course(course_id):
        validate_resource_exists(None, "Course", course_id)

    remove_image(image_url)
    log_operation_success("course delete", f"course {course_id}", user_id=admin.id)
    return {"success": True, "id": course_id}
