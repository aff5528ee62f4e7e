"""
In-memory storage backend

One dict per entity keyed by an auto-incrementing id. Rows are transient
instances of the ORM models so route code handles both backends alike.
Nothing survives a restart; use it for tests and local bootstrapping.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    Achievement,
    Badge,
    Category,
    ContactMessage,
    Course,
    Enrollment,
    Instructor,
    LearningPath,
    Lesson,
    Module,
    PathCourse,
    Progress,
    Review,
    Subscription,
    User,
    UserAchievement,
    UserBadge,
)
from storage.base import DUPLICATE_USER_MESSAGE, Storage
from utils.error_handling import ValidationError


def _apply_column_defaults(instance) -> None:
    """Fill unset attributes from scalar or callable column defaults"""
    for column in instance.__table__.columns:
        if column.default is None or getattr(instance, column.key) is not None:
            continue
        if column.default.is_scalar:
            setattr(instance, column.key, column.default.arg)
        elif column.default.is_callable:
            setattr(instance, column.key, column.default.arg(None))


class _Table:
    """Rows of one entity with an auto-incrementing primary key"""

    def __init__(self, model):
        self.model = model
        self.rows: Dict[int, object] = {}
        self._next_id = 1

    def insert(self, **fields):
        instance = self.model(**fields)
        _apply_column_defaults(instance)
        instance.id = self._next_id
        self._next_id += 1
        self.rows[instance.id] = instance
        return instance

    def get(self, row_id):
        return self.rows.get(row_id)

    def update(self, row_id, **fields):
        instance = self.rows.get(row_id)
        if instance is None:
            return None
        for key, value in fields.items():
            setattr(instance, key, value)
        if "updated_at" in instance.__table__.columns and "updated_at" not in fields:
            instance.updated_at = datetime.utcnow()
        return instance

    def delete_where(self, predicate) -> int:
        doomed = [row_id for row_id, row in self.rows.items() if predicate(row)]
        for row_id in doomed:
            del self.rows[row_id]
        return len(doomed)

    def where(self, predicate) -> list:
        return [row for row in self.rows.values() if predicate(row)]

    def first(self, predicate):
        return next((row for row in self.rows.values() if predicate(row)), None)

    def all(self) -> list:
        return list(self.rows.values())


class MemStorage(Storage):
    """Map-backed implementation of the course platform repository"""

    def __init__(self):
        self.users = _Table(User)
        self.categories = _Table(Category)
        self.instructors = _Table(Instructor)
        self.courses = _Table(Course)
        self.modules = _Table(Module)
        self.lessons = _Table(Lesson)
        self.learning_paths = _Table(LearningPath)
        self.path_courses = _Table(PathCourse)
        self.enrollments = _Table(Enrollment)
        self.progress = _Table(Progress)
        self.reviews = _Table(Review)
        self.badges = _Table(Badge)
        self.user_badges = _Table(UserBadge)
        self.achievements = _Table(Achievement)
        self.user_achievements = _Table(UserAchievement)
        self.subscriptions = _Table(Subscription)
        self.contact_messages = _Table(ContactMessage)
        # course_id -> ordered category ids
        self.course_categories: Dict[int, List[int]] = defaultdict(list)

    # Users

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_user_by_username(self, username):
        return self.users.first(lambda u: u.username == username)

    def get_user_by_email(self, email):
        if not email:
            return None
        return self.users.first(lambda u: u.email and u.email.lower() == email.lower())

    def create_user(self, **fields):
        username, email = fields.get("username"), (fields.get("email") or "").lower()
        if self.users.first(lambda u: u.username == username or (email and (u.email or "").lower() == email)):
            raise ValidationError(DUPLICATE_USER_MESSAGE)
        return self.users.insert(**fields)

    def update_user(self, user_id, **fields):
        return self.users.update(user_id, **fields)

    # Categories and instructors

    def get_categories(self):
        return sorted(self.categories.all(), key=lambda c: c.id)

    def get_category(self, category_id):
        return self.categories.get(category_id)

    def create_category(self, **fields):
        return self.categories.insert(**fields)

    def get_course_categories(self, course_id):
        return [self.categories.get(cid) for cid in self.course_categories.get(course_id, []) if cid in self.categories.rows]

    def set_course_categories(self, course_id: int, category_ids: Iterable[int]) -> None:
        unique_ids = []
        for category_id in category_ids:
            if category_id in self.categories.rows and category_id not in unique_ids:
                unique_ids.append(category_id)
        self.course_categories[course_id] = unique_ids

    def get_course_ids_by_category(self, category_id):
        return [
            course_id
            for course_id, category_ids in self.course_categories.items()
            if category_id in category_ids and course_id in self.courses.rows
        ]

    def get_instructors(self):
        return sorted(self.instructors.all(), key=lambda i: i.id)

    def get_instructor(self, instructor_id):
        return self.instructors.get(instructor_id)

    def create_instructor(self, **fields):
        return self.instructors.insert(**fields)

    # Courses

    def get_course(self, course_id):
        return self.courses.get(course_id)

    def create_course(self, **fields):
        return self.courses.insert(**fields)

    def update_course(self, course_id, **fields):
        return self.courses.update(course_id, **fields)

    def delete_course(self, course_id):
        if course_id not in self.courses.rows:
            return False

        module_ids = {m.id for m in self.modules.where(lambda m: m.course_id == course_id)}
        self.lessons.delete_where(lambda l: l.module_id in module_ids)
        self.modules.delete_where(lambda m: m.course_id == course_id)
        self.progress.delete_where(lambda p: p.course_id == course_id)
        self.enrollments.delete_where(lambda e: e.course_id == course_id)
        self.reviews.delete_where(lambda r: r.course_id == course_id)
        self.path_courses.delete_where(lambda pc: pc.course_id == course_id)
        self.course_categories.pop(course_id, None)
        del self.courses.rows[course_id]
        return True

    def _newest_first(self, courses):
        return sorted(courses, key=lambda c: (c.created_at, c.id), reverse=True)

    def _filter_courses(self, course_ids, level, search, limit, offset):
        allowed = set(course_ids) if course_ids is not None else None
        needle = search.casefold() if search else None

        matches = [
            course
            for course in self.courses.all()
            if (allowed is None or course.id in allowed)
            and (level is None or course.level == level)
            and (needle is None or needle in (course.title or "").casefold())
        ]
        matches = self._newest_first(matches)

        start = offset or 0
        end = start + limit if limit is not None else None
        return matches[start:end]

    def get_unenrolled_courses(self, user_id, limit):
        enrolled = {e.course_id for e in self.enrollments.where(lambda e: e.user_id == user_id)}
        courses = [c for c in self.courses.all() if c.id not in enrolled]
        return self._newest_first(courses)[:limit]

    # Modules and lessons

    def get_module(self, module_id):
        return self.modules.get(module_id)

    def get_modules_by_course(self, course_id):
        return sorted(self.modules.where(lambda m: m.course_id == course_id), key=lambda m: (m.order, m.id))

    def create_module(self, **fields):
        return self.modules.insert(**fields)

    def get_lesson(self, lesson_id):
        return self.lessons.get(lesson_id)

    def get_lessons_by_module(self, module_id):
        return sorted(self.lessons.where(lambda l: l.module_id == module_id), key=lambda l: (l.order, l.id))

    def create_lesson(self, **fields):
        return self.lessons.insert(**fields)

    # Learning paths

    def get_learning_paths(self):
        return sorted(self.learning_paths.all(), key=lambda p: (p.order, p.id))

    def get_learning_path(self, path_id):
        return self.learning_paths.get(path_id)

    def create_learning_path(self, **fields):
        return self.learning_paths.insert(**fields)

    def get_path_courses(self, path_id):
        links = sorted(self.path_courses.where(lambda pc: pc.path_id == path_id), key=lambda pc: (pc.order, pc.id))
        return [self.courses.get(pc.course_id) for pc in links if pc.course_id in self.courses.rows]

    def add_course_to_path(self, path_id, course_id, order):
        existing = self.path_courses.first(lambda pc: pc.path_id == path_id and pc.course_id == course_id)
        if existing is None:
            self.path_courses.insert(path_id=path_id, course_id=course_id, order=order)

    # Enrollments

    def get_enrollment(self, user_id, course_id):
        return self.enrollments.first(lambda e: e.user_id == user_id and e.course_id == course_id)

    def get_user_enrollments(self, user_id):
        return sorted(self.enrollments.where(lambda e: e.user_id == user_id), key=lambda e: e.id)

    def _insert_enrollment(self, **fields) -> Tuple[Enrollment, bool]:
        existing = self.get_enrollment(fields["user_id"], fields["course_id"])
        if existing is not None:
            return existing, False
        return self.enrollments.insert(**fields), True

    def update_enrollment_status(self, user_id, course_id, status):
        enrollment = self.get_enrollment(user_id, course_id)
        if enrollment is None:
            return None
        enrollment.status = status
        return enrollment

    # Progress

    def get_progress(self, user_id, lesson_id):
        return self.progress.first(lambda p: p.user_id == user_id and p.lesson_id == lesson_id)

    def get_user_progress(self, user_id, course_id=None):
        return sorted(
            self.progress.where(lambda p: p.user_id == user_id and (course_id is None or p.course_id == course_id)),
            key=lambda p: p.id,
        )

    def _insert_progress(self, **fields) -> Tuple[Progress, bool]:
        existing = self.get_progress(fields["user_id"], fields["lesson_id"])
        if existing is not None:
            return existing, False
        return self.progress.insert(**fields), True

    # Reviews

    def get_course_reviews(self, course_id):
        return sorted(self.reviews.where(lambda r: r.course_id == course_id), key=lambda r: (r.created_at, r.id), reverse=True)

    def create_review(self, **fields):
        return self.reviews.insert(**fields)

    # Badges

    def get_badges(self):
        return sorted(self.badges.all(), key=lambda b: b.id)

    def get_badge(self, badge_id):
        return self.badges.get(badge_id)

    def create_badge(self, **fields):
        return self.badges.insert(**fields)

    def get_user_badge(self, user_id, badge_id):
        return self.user_badges.first(lambda ub: ub.user_id == user_id and ub.badge_id == badge_id)

    def get_user_badges(self, user_id):
        return sorted(self.user_badges.where(lambda ub: ub.user_id == user_id), key=lambda ub: ub.id)

    def _insert_user_badge(self, **fields) -> Tuple[UserBadge, bool]:
        existing = self.get_user_badge(fields["user_id"], fields["badge_id"])
        if existing is not None:
            return existing, False
        return self.user_badges.insert(**fields), True

    # Achievements

    def get_achievements(self, achievement_type=None):
        return sorted(
            self.achievements.where(lambda a: achievement_type is None or a.type == achievement_type),
            key=lambda a: a.id,
        )

    def get_achievement(self, achievement_id):
        return self.achievements.get(achievement_id)

    def create_achievement(self, **fields):
        return self.achievements.insert(**fields)

    def get_user_achievement(self, user_id, achievement_id):
        return self.user_achievements.first(lambda ua: ua.user_id == user_id and ua.achievement_id == achievement_id)

    def get_user_achievements(self, user_id):
        return sorted(self.user_achievements.where(lambda ua: ua.user_id == user_id), key=lambda ua: ua.id)

    def _insert_user_achievement(self, **fields) -> Tuple[UserAchievement, bool]:
        existing = self.get_user_achievement(fields["user_id"], fields["achievement_id"])
        if existing is not None:
            return existing, False
        return self.user_achievements.insert(**fields), True

    def _update_user_achievement(self, user_achievement_id, **fields):
        return self.user_achievements.update(user_achievement_id, **fields)

    # Newsletter and contact

    def get_subscription_by_email(self, email):
        return self.subscriptions.first(lambda s: s.email.lower() == email.lower())

    def _insert_subscription(self, **fields) -> Tuple[Subscription, bool]:
        existing = self.get_subscription_by_email(fields["email"])
        if existing is not None:
            return existing, False
        return self.subscriptions.insert(**fields), True

    def create_contact_message(self, **fields):
        return self.contact_messages.insert(**fields)

    def get_contact_messages(self):
        return sorted(self.contact_messages.all(), key=lambda m: (m.created_at, m.id), reverse=True)
