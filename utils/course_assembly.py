"""
Course query assembly

Turns storage rows into the nested camelCase JSON the API returns:
course summaries and details, lesson detail with navigation, learning
paths and admin listings.
"""

import enum
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

VIDEO = "video"
EXERCISE = "exercise"
RESOURCE_TYPES = ("resource", "document")


# =============================================================================
# HELPERS
# =============================================================================


def parse_duration_seconds(duration: Optional[str]) -> int:
    """
    Parse an "HH:MM:SS" string into seconds.

    Segments are positional (hours, minutes, seconds); a missing or
    non-numeric segment counts as 0.
    """
    if not duration:
        return 0

    parts = duration.strip().split(":")
    total = 0
    for index, multiplier in enumerate((3600, 60, 1)):
        try:
            total += int(parts[index].strip()) * multiplier
        except (IndexError, ValueError):
            continue
    return total


def video_duration_hours(lessons: Iterable) -> float:
    """Total video length of the given lessons in hours, rounded to one decimal"""
    seconds = sum(
        parse_duration_seconds(lesson.duration)
        for lesson in lessons
        if enum_value(lesson.type) == VIDEO and lesson.duration
    )
    return round(seconds / 3600, 1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up"""
    return int(math.floor(value + 0.5))


def enum_value(value):
    return value.value if isinstance(value, enum.Enum) else value


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# =============================================================================
# ROW SERIALIZERS
# =============================================================================


def serialize_user(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "displayName": user.display_name,
        "role": enum_value(user.role),
        "avatarUrl": user.avatar_url,
        "stats": {
            "totalLearningTime": user.total_learning_time or 0,
            "completedCourses": user.completed_courses or 0,
            "completedLessons": user.completed_lessons or 0,
            "certificates": user.certificates or 0,
        },
        "createdAt": iso(user.created_at),
    }


def serialize_category(category) -> Dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "iconName": category.icon_name,
    }


def serialize_instructor(instructor) -> Optional[Dict[str, Any]]:
    if instructor is None:
        return None
    return {
        "id": instructor.id,
        "name": instructor.name,
        "title": instructor.title,
        "bio": instructor.bio,
        "avatarUrl": instructor.avatar_url,
        "courseCount": instructor.course_count,
        "studentCount": instructor.student_count,
        "reviewScore": instructor.review_score,
    }


def serialize_course(course) -> Dict[str, Any]:
    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "imageUrl": course.image_url,
        "level": enum_value(course.level),
        "duration": course.duration,
        "price": course.price,
        "originalPrice": course.original_price,
        "enrollmentCount": course.enrollment_count,
        "rating": course.rating,
        "instructorId": course.instructor_id,
        "createdAt": iso(course.created_at),
        "updatedAt": iso(course.updated_at),
    }


def serialize_lesson(lesson) -> Dict[str, Any]:
    return {
        "id": lesson.id,
        "moduleId": lesson.module_id,
        "title": lesson.title,
        "description": lesson.description,
        "type": enum_value(lesson.type),
        "content": lesson.content,
        "videoUrl": lesson.video_url,
        "duration": lesson.duration,
        "order": lesson.order,
    }


def serialize_module(module) -> Dict[str, Any]:
    return {
        "id": module.id,
        "courseId": module.course_id,
        "title": module.title,
        "description": module.description,
        "order": module.order,
    }


def serialize_enrollment(enrollment) -> Dict[str, Any]:
    return {
        "id": enrollment.id,
        "userId": enrollment.user_id,
        "courseId": enrollment.course_id,
        "enrolledAt": iso(enrollment.enrolled_at),
        "status": enum_value(enrollment.status),
    }


def serialize_progress(progress) -> Dict[str, Any]:
    return {
        "id": progress.id,
        "userId": progress.user_id,
        "lessonId": progress.lesson_id,
        "courseId": progress.course_id,
        "status": enum_value(progress.status),
        "completedAt": iso(progress.completed_at),
    }


def serialize_review(review, author=None) -> Dict[str, Any]:
    data = {
        "id": review.id,
        "userId": review.user_id,
        "courseId": review.course_id,
        "rating": review.rating,
        "comment": review.comment,
        "createdAt": iso(review.created_at),
    }
    if author is not None:
        data["user"] = {
            "id": author.id,
            "username": author.username,
            "displayName": author.display_name,
            "avatarUrl": author.avatar_url,
        }
    return data


def serialize_badge(badge) -> Dict[str, Any]:
    return {
        "id": badge.id,
        "name": badge.name,
        "description": badge.description,
        "imageUrl": badge.image_url,
        "type": badge.type,
        "pointsRequired": badge.points_required,
    }


def serialize_achievement(achievement) -> Dict[str, Any]:
    return {
        "id": achievement.id,
        "name": achievement.name,
        "description": achievement.description,
        "iconName": achievement.icon_name,
        "type": enum_value(achievement.type),
        "requiredCount": achievement.required_count,
        "badgeId": achievement.badge_id,
    }


def serialize_subscription(subscription) -> Dict[str, Any]:
    return {"id": subscription.id, "email": subscription.email, "createdAt": iso(subscription.created_at)}


def serialize_contact_message(contact) -> Dict[str, Any]:
    return {
        "id": contact.id,
        "name": contact.name,
        "email": contact.email,
        "subject": contact.subject,
        "message": contact.message,
        "createdAt": iso(contact.created_at),
    }


# =============================================================================
# COMPOSITE RESPONSES
# =============================================================================


def _completed_lesson_ids(storage, user_id: Optional[int], course_id: int) -> set:
    if user_id is None:
        return set()
    return {p.lesson_id for p in storage.get_user_progress(user_id, course_id)}


def build_course_summary(storage, course, user_id: Optional[int] = None) -> Dict[str, Any]:
    """Course listing entry with categories, enrollment flag and lesson count"""
    data = serialize_course(course)
    data["categories"] = [serialize_category(c) for c in storage.get_course_categories(course.id)]
    data["isEnrolled"] = storage.is_enrolled(user_id, course.id) if user_id is not None else False
    data["lessonsCount"] = storage.count_course_lessons(course.id)
    return data


def build_course_detail(storage, course, user_id: Optional[int] = None) -> Dict[str, Any]:
    """Full course page: categories, ordered modules with lessons, instructor, reviews and counts"""
    completed_ids = _completed_lesson_ids(storage, user_id, course.id)

    modules = []
    all_lessons = []
    for module in storage.get_modules_by_course(course.id):
        lessons = storage.get_lessons_by_module(module.id)
        all_lessons.extend(lessons)

        module_data = serialize_module(module)
        module_data["lessons"] = []
        for lesson in lessons:
            lesson_data = serialize_lesson(lesson)
            lesson_data["completed"] = lesson.id in completed_ids
            module_data["lessons"].append(lesson_data)
        modules.append(module_data)

    reviews = []
    for review in storage.get_course_reviews(course.id):
        reviews.append(serialize_review(review, storage.get_user(review.user_id)))

    is_enrolled = storage.is_enrolled(user_id, course.id) if user_id is not None else False
    lesson_types = [enum_value(lesson.type) for lesson in all_lessons]

    data = serialize_course(course)
    data.update(
        {
            "categories": [serialize_category(c) for c in storage.get_course_categories(course.id)],
            "modules": modules,
            "instructor": serialize_instructor(
                storage.get_instructor(course.instructor_id) if course.instructor_id else None
            ),
            "reviews": reviews,
            "isEnrolled": is_enrolled,
            "progress": storage.calculate_course_progress(user_id, course.id) if user_id is not None else 0,
            "lessonsCount": len(all_lessons),
            "completedLessons": sum(1 for lesson in all_lessons if lesson.id in completed_ids),
            "firstLessonId": all_lessons[0].id if all_lessons else None,
            "videoDuration": video_duration_hours(all_lessons),
            "exercisesCount": lesson_types.count(EXERCISE),
            "resourcesCount": sum(1 for t in lesson_types if t in RESOURCE_TYPES),
        }
    )
    return data


def build_lesson_detail(storage, lesson, course_id: int, user_id: int) -> Dict[str, Any]:
    """Lesson with its course position and previous/next navigation"""
    course_lessons = storage.get_course_lessons(course_id)
    ids = [l.id for l in course_lessons]
    position = ids.index(lesson.id)

    module = storage.get_module(lesson.module_id)

    data = serialize_lesson(lesson)
    data.update(
        {
            "courseId": course_id,
            "module": serialize_module(module) if module else None,
            "prevLessonId": ids[position - 1] if position > 0 else None,
            "nextLessonId": ids[position + 1] if position + 1 < len(ids) else None,
            "completed": storage.get_progress(user_id, lesson.id) is not None,
            "order": position + 1,
            "totalLessons": len(ids),
        }
    )
    return data


def build_learning_path(storage, path, user_id: Optional[int] = None) -> Dict[str, Any]:
    """Learning path with its ordered courses, merged categories and the caller's progress"""
    courses = storage.get_path_courses(path.id)

    categories: List[Dict[str, Any]] = []
    seen = set()
    course_entries = []
    for course in courses:
        for category in storage.get_course_categories(course.id):
            if category.id not in seen:
                seen.add(category.id)
                categories.append(serialize_category(category))
        course_entries.append(build_course_summary(storage, course, user_id))

    progress = 0
    enrolled = False
    if user_id is not None and courses:
        percentages = [storage.calculate_course_progress(user_id, course.id) for course in courses]
        progress = round_half_up(sum(percentages) / len(percentages))
        enrolled = any(entry["isEnrolled"] for entry in course_entries)

    return {
        "id": path.id,
        "title": path.title,
        "description": path.description,
        "duration": path.duration,
        "imageUrl": path.image_url,
        "order": path.order,
        "courses": course_entries,
        "courseCount": len(courses),
        "categories": categories,
        "progress": progress,
        "enrolled": enrolled,
        "firstCourseId": courses[0].id if courses else None,
    }


def build_admin_course(storage, course) -> Dict[str, Any]:
    """Admin listing entry with structure counts"""
    data = serialize_course(course)
    data.update(
        {
            "categories": [serialize_category(c) for c in storage.get_course_categories(course.id)],
            "instructor": serialize_instructor(
                storage.get_instructor(course.instructor_id) if course.instructor_id else None
            ),
            "modulesCount": len(storage.get_modules_by_course(course.id)),
            "lessonsCount": storage.count_course_lessons(course.id),
        }
    )
    return data
