"""
SQLAlchemy storage backend (system of record)

Each mutating call commits on its own. Inserts guarded by a unique
constraint resolve duplicate races by rolling back and returning the row
that won.
"""

from typing import Iterable, List, Optional, Tuple

from sqlalchemy import and_, exists, func, insert, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

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
    course_categories,
)
from storage.base import DUPLICATE_USER_MESSAGE, Storage
from utils.error_handling import ValidationError
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("storage.database")


class DatabaseStorage(Storage):
    """Repository over a request-scoped SQLAlchemy session"""

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # SESSION HELPERS
    # =========================================================================

    def _add(self, instance):
        self.session.add(instance)
        self.session.commit()
        self.session.refresh(instance)
        return instance

    def _update(self, instance, **fields):
        if instance is None:
            return None
        for key, value in fields.items():
            setattr(instance, key, value)
        self.session.commit()
        self.session.refresh(instance)
        return instance

    def _insert_unique(self, instance, lookup) -> Tuple[object, bool]:
        """Insert guarded by a unique constraint; on conflict return the existing row"""
        try:
            return self._add(instance), True
        except IntegrityError:
            self.session.rollback()
            existing = lookup()
            if existing is None:
                raise
            logger.info(
                f"Concurrent insert into {instance.__tablename__} resolved to existing row",
                category=LogCategory.DATABASE,
                extra={"table": instance.__tablename__, "id": existing.id},
            )
            return existing, False

    def ping(self) -> bool:
        self.session.execute(text("SELECT 1"))
        return True

    def rollback(self) -> None:
        self.session.rollback()

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user(self, user_id):
        return self.session.get(User, user_id)

    def get_user_by_username(self, username):
        return self.session.query(User).filter(User.username == username).first()

    def get_user_by_email(self, email):
        if not email:
            return None
        return self.session.query(User).filter(func.lower(User.email) == email.lower()).first()

    def create_user(self, **fields):
        try:
            return self._add(User(**fields))
        except IntegrityError:
            self.session.rollback()
            raise ValidationError(DUPLICATE_USER_MESSAGE)

    def update_user(self, user_id, **fields):
        return self._update(self.get_user(user_id), **fields)

    # =========================================================================
    # CATEGORIES AND INSTRUCTORS
    # =========================================================================

    def get_categories(self):
        return self.session.query(Category).order_by(Category.id).all()

    def get_category(self, category_id):
        return self.session.get(Category, category_id)

    def create_category(self, **fields):
        return self._add(Category(**fields))

    def get_course_categories(self, course_id):
        return (
            self.session.query(Category)
            .join(course_categories, course_categories.c.category_id == Category.id)
            .filter(course_categories.c.course_id == course_id)
            .order_by(Category.id)
            .all()
        )

    def set_course_categories(self, course_id: int, category_ids: Iterable[int]) -> None:
        wanted = list(dict.fromkeys(category_ids))
        known = set()
        if wanted:
            known = {row.id for row in self.session.query(Category.id).filter(Category.id.in_(wanted))}

        self.session.execute(course_categories.delete().where(course_categories.c.course_id == course_id))
        rows = [{"course_id": course_id, "category_id": cid} for cid in wanted if cid in known]
        if rows:
            self.session.execute(insert(course_categories), rows)
        self.session.commit()

    def get_course_ids_by_category(self, category_id):
        rows = self.session.query(course_categories.c.course_id).filter(course_categories.c.category_id == category_id)
        return [row.course_id for row in rows]

    def get_instructors(self):
        return self.session.query(Instructor).order_by(Instructor.id).all()

    def get_instructor(self, instructor_id):
        return self.session.get(Instructor, instructor_id)

    def create_instructor(self, **fields):
        return self._add(Instructor(**fields))

    # =========================================================================
    # COURSES
    # =========================================================================

    def get_course(self, course_id):
        return self.session.get(Course, course_id)

    def create_course(self, **fields):
        return self._add(Course(**fields))

    def update_course(self, course_id, **fields):
        return self._update(self.get_course(course_id), **fields)

    def delete_course(self, course_id):
        course = self.get_course(course_id)
        if course is None:
            return False

        module_ids = [m.id for m in self.session.query(Module.id).filter(Module.course_id == course_id)]
        try:
            if module_ids:
                self.session.query(Lesson).filter(Lesson.module_id.in_(module_ids)).delete(synchronize_session=False)
            self.session.query(Module).filter(Module.course_id == course_id).delete(synchronize_session=False)
            self.session.query(Progress).filter(Progress.course_id == course_id).delete(synchronize_session=False)
            self.session.query(Enrollment).filter(Enrollment.course_id == course_id).delete(synchronize_session=False)
            self.session.query(Review).filter(Review.course_id == course_id).delete(synchronize_session=False)
            self.session.query(PathCourse).filter(PathCourse.course_id == course_id).delete(synchronize_session=False)
            self.session.execute(course_categories.delete().where(course_categories.c.course_id == course_id))
            self.session.query(Course).filter(Course.id == course_id).delete(synchronize_session=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.expire_all()
        return True

    def _newest_first(self, query):
        return query.order_by(Course.created_at.desc(), Course.id.desc())

    def _filter_courses(self, course_ids, level, search, limit, offset):
        query = self.session.query(Course)
        if course_ids is not None:
            query = query.filter(Course.id.in_(course_ids))
        if level is not None:
            query = query.filter(Course.level == level)
        if search:
            query = query.filter(Course.title.ilike(f"%{search}%"))

        query = self._newest_first(query)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_unenrolled_courses(self, user_id, limit):
        enrolled = exists().where(and_(Enrollment.course_id == Course.id, Enrollment.user_id == user_id))
        return self._newest_first(self.session.query(Course).filter(~enrolled)).limit(limit).all()

    # =========================================================================
    # MODULES AND LESSONS
    # =========================================================================

    def get_module(self, module_id):
        return self.session.get(Module, module_id)

    def get_modules_by_course(self, course_id):
        return self.session.query(Module).filter(Module.course_id == course_id).order_by(Module.order, Module.id).all()

    def create_module(self, **fields):
        return self._add(Module(**fields))

    def get_lesson(self, lesson_id):
        return self.session.get(Lesson, lesson_id)

    def get_lessons_by_module(self, module_id):
        return self.session.query(Lesson).filter(Lesson.module_id == module_id).order_by(Lesson.order, Lesson.id).all()

    def create_lesson(self, **fields):
        return self._add(Lesson(**fields))

    def get_course_lessons(self, course_id):
        return (
            self.session.query(Lesson)
            .join(Module, Lesson.module_id == Module.id)
            .filter(Module.course_id == course_id)
            .order_by(Module.order, Module.id, Lesson.order, Lesson.id)
            .all()
        )

    def count_course_lessons(self, course_id):
        return (
            self.session.query(func.count(Lesson.id))
            .join(Module, Lesson.module_id == Module.id)
            .filter(Module.course_id == course_id)
            .scalar()
            or 0
        )

    # =========================================================================
    # LEARNING PATHS
    # =========================================================================

    def get_learning_paths(self):
        return self.session.query(LearningPath).order_by(LearningPath.order, LearningPath.id).all()

    def get_learning_path(self, path_id):
        return self.session.get(LearningPath, path_id)

    def create_learning_path(self, **fields):
        return self._add(LearningPath(**fields))

    def get_path_courses(self, path_id):
        return (
            self.session.query(Course)
            .join(PathCourse, PathCourse.course_id == Course.id)
            .filter(PathCourse.path_id == path_id)
            .order_by(PathCourse.order, PathCourse.id)
            .all()
        )

    def add_course_to_path(self, path_id, course_id, order):
        link = PathCourse(path_id=path_id, course_id=course_id, order=order)
        self._insert_unique(
            link,
            lambda: self.session.query(PathCourse)
            .filter(PathCourse.path_id == path_id, PathCourse.course_id == course_id)
            .first(),
        )

    # =========================================================================
    # ENROLLMENTS AND PROGRESS
    # =========================================================================

    def get_enrollment(self, user_id, course_id):
        return (
            self.session.query(Enrollment)
            .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
            .first()
        )

    def get_user_enrollments(self, user_id):
        return self.session.query(Enrollment).filter(Enrollment.user_id == user_id).order_by(Enrollment.id).all()

    def _insert_enrollment(self, **fields):
        return self._insert_unique(
            Enrollment(**fields), lambda: self.get_enrollment(fields["user_id"], fields["course_id"])
        )

    def update_enrollment_status(self, user_id, course_id, status):
        return self._update(self.get_enrollment(user_id, course_id), status=status)

    def get_progress(self, user_id, lesson_id):
        return (
            self.session.query(Progress).filter(Progress.user_id == user_id, Progress.lesson_id == lesson_id).first()
        )

    def get_user_progress(self, user_id, course_id=None):
        query = self.session.query(Progress).filter(Progress.user_id == user_id)
        if course_id is not None:
            query = query.filter(Progress.course_id == course_id)
        return query.order_by(Progress.id).all()

    def _insert_progress(self, **fields):
        return self._insert_unique(Progress(**fields), lambda: self.get_progress(fields["user_id"], fields["lesson_id"]))

    def get_course_reviews(self, course_id):
        return (
            self.session.query(Review)
            .filter(Review.course_id == course_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    def create_review(self, **fields):
        return self._add(Review(**fields))

    # =========================================================================
    # BADGES AND ACHIEVEMENTS
    # =========================================================================

    def get_badges(self):
        return self.session.query(Badge).order_by(Badge.id).all()

    def get_badge(self, badge_id):
        return self.session.get(Badge, badge_id)

    def create_badge(self, **fields):
        return self._add(Badge(**fields))

    def get_user_badge(self, user_id, badge_id):
        return (
            self.session.query(UserBadge).filter(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id).first()
        )

    def get_user_badges(self, user_id):
        return self.session.query(UserBadge).filter(UserBadge.user_id == user_id).order_by(UserBadge.id).all()

    def _insert_user_badge(self, **fields):
        return self._insert_unique(
            UserBadge(**fields), lambda: self.get_user_badge(fields["user_id"], fields["badge_id"])
        )

    def get_achievements(self, achievement_type=None):
        query = self.session.query(Achievement)
        if achievement_type is not None:
            query = query.filter(Achievement.type == achievement_type)
        return query.order_by(Achievement.id).all()

    def get_achievement(self, achievement_id):
        return self.session.get(Achievement, achievement_id)

    def create_achievement(self, **fields):
        return self._add(Achievement(**fields))

    def get_user_achievement(self, user_id, achievement_id):
        return (
            self.session.query(UserAchievement)
            .filter(UserAchievement.user_id == user_id, UserAchievement.achievement_id == achievement_id)
            .first()
        )

    def get_user_achievements(self, user_id):
        return (
            self.session.query(UserAchievement)
            .filter(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.id)
            .all()
        )

    def _insert_user_achievement(self, **fields):
        return self._insert_unique(
            UserAchievement(**fields), lambda: self.get_user_achievement(fields["user_id"], fields["achievement_id"])
        )

    def _update_user_achievement(self, user_achievement_id, **fields):
        return self._update(self.session.get(UserAchievement, user_achievement_id), **fields)

    # =========================================================================
    # NEWSLETTER AND CONTACT
    # =========================================================================

    def get_subscription_by_email(self, email):
        return self.session.query(Subscription).filter(func.lower(Subscription.email) == email.lower()).first()

    def _insert_subscription(self, **fields):
        return self._insert_unique(Subscription(**fields), lambda: self.get_subscription_by_email(fields["email"]))

    def create_contact_message(self, **fields):
        return self._add(ContactMessage(**fields))

    def get_contact_messages(self):
        return self.session.query(ContactMessage).order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()).all()
