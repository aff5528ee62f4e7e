"""
Repository interface shared by the database and in-memory backends

Backends implement the per-entity primitives (get/create/update/delete).
Enrollment, progress, achievement and badge bookkeeping is written once
here in terms of those primitives so both backends behave identically.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    Achievement,
    AchievementType,
    Badge,
    Category,
    ContactMessage,
    Course,
    CourseLevel,
    Enrollment,
    EnrollmentStatus,
    Instructor,
    LearningPath,
    Lesson,
    Module,
    Progress,
    ProgressStatus,
    Review,
    Subscription,
    User,
    UserAchievement,
    UserBadge,
)
from utils.course_assembly import parse_duration_seconds, round_half_up
from utils.error_handling import ConflictError, ValidationError, validate_resource_exists
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("storage")

DUPLICATE_USER_MESSAGE = "Username or email already registered"


class Storage(ABC):
    """Course platform repository"""

    # =========================================================================
    # USERS
    # =========================================================================

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, **fields) -> User: ...

    @abstractmethod
    def update_user(self, user_id: int, **fields) -> Optional[User]: ...

    # =========================================================================
    # CATEGORIES AND INSTRUCTORS
    # =========================================================================

    @abstractmethod
    def get_categories(self) -> List[Category]: ...

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]: ...

    @abstractmethod
    def create_category(self, **fields) -> Category: ...

    @abstractmethod
    def get_course_categories(self, course_id: int) -> List[Category]: ...

    @abstractmethod
    def set_course_categories(self, course_id: int, category_ids: Iterable[int]) -> None: ...

    @abstractmethod
    def get_course_ids_by_category(self, category_id: int) -> List[int]: ...

    @abstractmethod
    def get_instructors(self) -> List[Instructor]: ...

    @abstractmethod
    def get_instructor(self, instructor_id: int) -> Optional[Instructor]: ...

    @abstractmethod
    def create_instructor(self, **fields) -> Instructor: ...

    # =========================================================================
    # COURSES, MODULES, LESSONS
    # =========================================================================

    @abstractmethod
    def get_course(self, course_id: int) -> Optional[Course]: ...

    @abstractmethod
    def create_course(self, **fields) -> Course: ...

    @abstractmethod
    def update_course(self, course_id: int, **fields) -> Optional[Course]: ...

    @abstractmethod
    def delete_course(self, course_id: int) -> bool:
        """Delete a course with its modules, lessons, enrollments, progress, reviews and links"""

    @abstractmethod
    def _filter_courses(
        self,
        course_ids: Optional[List[int]],
        level: Optional[CourseLevel],
        search: Optional[str],
        limit: Optional[int],
        offset: Optional[int],
    ) -> List[Course]:
        """Newest-first courses restricted to ``course_ids`` (None means all)"""

    @abstractmethod
    def get_unenrolled_courses(self, user_id: int, limit: int) -> List[Course]: ...

    @abstractmethod
    def get_module(self, module_id: int) -> Optional[Module]: ...

    @abstractmethod
    def get_modules_by_course(self, course_id: int) -> List[Module]: ...

    @abstractmethod
    def create_module(self, **fields) -> Module: ...

    @abstractmethod
    def get_lesson(self, lesson_id: int) -> Optional[Lesson]: ...

    @abstractmethod
    def get_lessons_by_module(self, module_id: int) -> List[Lesson]: ...

    @abstractmethod
    def create_lesson(self, **fields) -> Lesson: ...

    # =========================================================================
    # LEARNING PATHS
    # =========================================================================

    @abstractmethod
    def get_learning_paths(self) -> List[LearningPath]: ...

    @abstractmethod
    def get_learning_path(self, path_id: int) -> Optional[LearningPath]: ...

    @abstractmethod
    def create_learning_path(self, **fields) -> LearningPath: ...

    @abstractmethod
    def get_path_courses(self, path_id: int) -> List[Course]: ...

    @abstractmethod
    def add_course_to_path(self, path_id: int, course_id: int, order: int) -> None: ...

    # =========================================================================
    # ENROLLMENTS, PROGRESS, REVIEWS
    # =========================================================================

    @abstractmethod
    def get_enrollment(self, user_id: int, course_id: int) -> Optional[Enrollment]: ...

    @abstractmethod
    def get_user_enrollments(self, user_id: int) -> List[Enrollment]: ...

    @abstractmethod
    def _insert_enrollment(self, **fields) -> Tuple[Enrollment, bool]:
        """Insert an enrollment, returning ``(row, created)``; a lost race returns the existing row"""

    @abstractmethod
    def update_enrollment_status(
        self, user_id: int, course_id: int, status: EnrollmentStatus
    ) -> Optional[Enrollment]: ...

    @abstractmethod
    def get_progress(self, user_id: int, lesson_id: int) -> Optional[Progress]: ...

    @abstractmethod
    def get_user_progress(self, user_id: int, course_id: Optional[int] = None) -> List[Progress]: ...

    @abstractmethod
    def _insert_progress(self, **fields) -> Tuple[Progress, bool]: ...

    @abstractmethod
    def get_course_reviews(self, course_id: int) -> List[Review]: ...

    @abstractmethod
    def create_review(self, **fields) -> Review: ...

    # =========================================================================
    # NEWSLETTER AND CONTACT
    # =========================================================================

    @abstractmethod
    def get_subscription_by_email(self, email: str) -> Optional[Subscription]: ...

    @abstractmethod
    def _insert_subscription(self, **fields) -> Tuple[Subscription, bool]: ...

    @abstractmethod
    def create_contact_message(self, **fields) -> ContactMessage: ...

    @abstractmethod
    def get_contact_messages(self) -> List[ContactMessage]: ...

    # =========================================================================
    # BADGES AND ACHIEVEMENTS
    # =========================================================================

    @abstractmethod
    def get_badges(self) -> List[Badge]: ...

    @abstractmethod
    def get_badge(self, badge_id: int) -> Optional[Badge]: ...

    @abstractmethod
    def create_badge(self, **fields) -> Badge: ...

    @abstractmethod
    def get_user_badge(self, user_id: int, badge_id: int) -> Optional[UserBadge]: ...

    @abstractmethod
    def get_user_badges(self, user_id: int) -> List[UserBadge]: ...

    @abstractmethod
    def _insert_user_badge(self, **fields) -> Tuple[UserBadge, bool]: ...

    @abstractmethod
    def get_achievements(self, achievement_type: Optional[AchievementType] = None) -> List[Achievement]: ...

    @abstractmethod
    def get_achievement(self, achievement_id: int) -> Optional[Achievement]: ...

    @abstractmethod
    def create_achievement(self, **fields) -> Achievement: ...

    @abstractmethod
    def get_user_achievement(self, user_id: int, achievement_id: int) -> Optional[UserAchievement]: ...

    @abstractmethod
    def get_user_achievements(self, user_id: int) -> List[UserAchievement]: ...

    @abstractmethod
    def _insert_user_achievement(self, **fields) -> Tuple[UserAchievement, bool]: ...

    @abstractmethod
    def _update_user_achievement(self, user_achievement_id: int, **fields) -> UserAchievement: ...

    # =========================================================================
    # HOUSEKEEPING
    # =========================================================================

    def ping(self) -> bool:
        return True

    def rollback(self) -> None:
        """Discard a failed unit of work; backends with transactions override this"""

    # =========================================================================
    # COURSE QUERIES
    # =========================================================================

    def list_courses(
        self,
        category_id: Optional[int] = None,
        level: Optional[CourseLevel] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Course]:
        """Filter courses by category AND level AND title substring, newest first"""
        course_ids = None
        if category_id is not None:
            course_ids = self.get_course_ids_by_category(category_id)
            if not course_ids:
                return []

        search = search.strip() if search else None
        return self._filter_courses(course_ids, level, search or None, limit, offset)

    def get_course_lessons(self, course_id: int) -> List[Lesson]:
        """All lessons of a course in module order, then lesson order"""
        lessons = []
        for module in self.get_modules_by_course(course_id):
            lessons.extend(self.get_lessons_by_module(module.id))
        return lessons

    def count_course_lessons(self, course_id: int) -> int:
        return len(self.get_course_lessons(course_id))

    def create_course_with_content(self, category_ids: Iterable[int], modules: Iterable, **fields) -> Course:
        """
        Create a course, link its categories and build modules/lessons from parsed content.

        Rows are written one at a time, so a failure part way through
        deletes the partially built course before re-raising.
        """
        course = self.create_course(**fields)
        course_id = course.id
        try:
            self._build_course_structure(course_id, category_ids, modules)
        except Exception as e:
            self.rollback()
            self.delete_course(course_id)
            logger.error(
                f"Course {course_id} removed after a failed content build",
                category=LogCategory.DATABASE,
                exception=e,
                course_id=course_id,
            )
            raise
        return course

    def _build_course_structure(self, course_id: int, category_ids: Iterable[int], modules: Iterable) -> None:
        self.set_course_categories(course_id, category_ids)

        for module_order, parsed_module in enumerate(modules, start=1):
            module = self.create_module(
                course_id=course_id,
                title=parsed_module.title,
                description=parsed_module.description,
                order=module_order,
            )
            for lesson_order, parsed_lesson in enumerate(parsed_module.lessons, start=1):
                self.create_lesson(
                    module_id=module.id,
                    title=parsed_lesson.title,
                    description=parsed_lesson.description,
                    type=parsed_lesson.type,
                    content=parsed_lesson.content,
                    video_url=parsed_lesson.video_url,
                    duration=parsed_lesson.duration,
                    order=lesson_order,
                )

    def add_review(self, user_id: int, course_id: int, rating: int, comment: Optional[str] = None) -> Review:
        validate_resource_exists(self.get_course(course_id), "Course", course_id)
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5", field="rating")

        review = self.create_review(user_id=user_id, course_id=course_id, rating=rating, comment=comment)

        ratings = [r.rating for r in self.get_course_reviews(course_id)]
        self.update_course(course_id, rating=round(sum(ratings) / len(ratings), 1))
        return review

    # =========================================================================
    # ENROLLMENT AND PROGRESS BOOKKEEPING
    # =========================================================================

    def is_enrolled(self, user_id: int, course_id: int) -> bool:
        return self.get_enrollment(user_id, course_id) is not None

    def enroll_user(self, user_id: int, course_id: int) -> Enrollment:
        """Enroll a user; enrolling twice returns the original enrollment"""
        course = validate_resource_exists(self.get_course(course_id), "Course", course_id)

        existing = self.get_enrollment(user_id, course_id)
        if existing is not None:
            return existing

        enrollment, created = self._insert_enrollment(
            user_id=user_id,
            course_id=course_id,
            enrolled_at=datetime.utcnow(),
            status=EnrollmentStatus.ACTIVE,
        )
        if created:
            self.update_course(course_id, enrollment_count=(course.enrollment_count or 0) + 1)
            logger.info(
                f"User {user_id} enrolled in course {course_id}",
                category=LogCategory.BUSINESS,
                user_id=user_id,
                course_id=course_id,
            )
        return enrollment

    def count_completed_lessons(self, user_id: int, course_id: int) -> int:
        return sum(1 for p in self.get_user_progress(user_id, course_id) if p.status == ProgressStatus.COMPLETED)

    def calculate_course_progress(self, user_id: int, course_id: int) -> int:
        """Completed lessons over total lessons as a rounded percentage, 0 for an empty course"""
        total = self.count_course_lessons(course_id)
        if total == 0:
            return 0
        completed = min(self.count_completed_lessons(user_id, course_id), total)
        return round_half_up(completed / total * 100)

    def mark_lesson_complete(self, user_id: int, lesson_id: int) -> Progress:
        """
        Record that a user finished a lesson.

        Marking an already completed lesson returns the stored row without
        side effects. A newly recorded completion re-evaluates course progress,
        achievements and user stats; failures there are logged and swallowed.
        """
        lesson = validate_resource_exists(self.get_lesson(lesson_id), "Lesson", lesson_id)
        module = validate_resource_exists(self.get_module(lesson.module_id), "Module", lesson.module_id)

        existing = self.get_progress(user_id, lesson_id)
        if existing is not None:
            return existing

        progress, created = self._insert_progress(
            user_id=user_id,
            lesson_id=lesson_id,
            course_id=module.course_id,
            status=ProgressStatus.COMPLETED,
            completed_at=datetime.utcnow(),
        )
        if not created:
            return progress

        logger.info(
            f"Lesson {lesson_id} completed",
            category=LogCategory.PROGRESS,
            user_id=user_id,
            lesson_id=lesson_id,
            course_id=module.course_id,
        )

        try:
            self._after_lesson_completed(user_id, module.course_id)
        except Exception as e:
            self.rollback()
            logger.error(
                f"Achievement update failed after completing lesson {lesson_id}",
                category=LogCategory.ACHIEVEMENT,
                exception=e,
                user_id=user_id,
            )

        return progress

    def _after_lesson_completed(self, user_id: int, course_id: int) -> None:
        percentage = self.calculate_course_progress(user_id, course_id)
        if percentage == 100:
            self.update_enrollment_status(user_id, course_id, EnrollmentStatus.COMPLETED)
            for achievement in self.get_achievements(AchievementType.COURSE_COMPLETION):
                current = self.get_user_achievement(user_id, achievement.id)
                self.update_achievement_progress(user_id, achievement.id, (current.progress if current else 0) + 1)

        self.refresh_user_stats(user_id)

    def refresh_user_stats(self, user_id: int) -> Optional[User]:
        """Recompute the aggregate counters on the user row from progress and enrollments"""
        completed = [p for p in self.get_user_progress(user_id) if p.status == ProgressStatus.COMPLETED]

        learning_seconds = 0
        for progress in completed:
            lesson = self.get_lesson(progress.lesson_id)
            if lesson is not None:
                learning_seconds += parse_duration_seconds(lesson.duration)

        completed_courses = sum(
            1 for e in self.get_user_enrollments(user_id) if e.status == EnrollmentStatus.COMPLETED
        )
        return self.update_user(
            user_id,
            completed_lessons=len(completed),
            completed_courses=completed_courses,
            total_learning_time=learning_seconds // 60,
        )

    def get_recommended_courses(self, user_id: int, limit: int = 8) -> Dict[str, list]:
        """
        Personalized feed with two buckets.

        ``in_progress`` holds ``(course, percentage)`` pairs for enrolled
        courses strictly between 0 and 100, least progress first.
        ``recommended`` holds courses the user is not enrolled in, newest first.
        """
        in_progress = []
        for enrollment in self.get_user_enrollments(user_id):
            course = self.get_course(enrollment.course_id)
            if course is None:
                continue
            percentage = self.calculate_course_progress(user_id, course.id)
            if 0 < percentage < 100:
                in_progress.append((course, percentage))
        in_progress.sort(key=lambda item: item[1])

        return {"in_progress": in_progress, "recommended": self.get_unenrolled_courses(user_id, limit)}

    # =========================================================================
    # ACHIEVEMENTS AND BADGES
    # =========================================================================

    def update_achievement_progress(self, user_id: int, achievement_id: int, progress: int) -> UserAchievement:
        """
        Set a user's absolute progress toward an achievement.

        Crossing ``required_count`` completes the achievement once: the
        completion timestamp is written on that transition only and the
        linked badge, if any, is awarded. Completion never reverts, and a
        value below the stored progress is rejected.
        """
        achievement = validate_resource_exists(self.get_achievement(achievement_id), "Achievement", achievement_id)
        reached = progress >= achievement.required_count
        now = datetime.utcnow()

        user_achievement = self.get_user_achievement(user_id, achievement_id)
        if user_achievement is None:
            user_achievement, created = self._insert_user_achievement(
                user_id=user_id,
                achievement_id=achievement_id,
                progress=progress,
                completed=reached,
                completed_at=now if reached else None,
            )
            if created:
                if reached:
                    self._on_achievement_unlocked(user_id, achievement)
                return user_achievement

        if progress < user_achievement.progress:
            raise ValidationError(
                f"Achievement progress cannot decrease from {user_achievement.progress} to {progress}",
                field="progress",
            )

        transitioned = reached and not user_achievement.completed
        fields = {"progress": progress}
        if transitioned:
            fields.update(completed=True, completed_at=now)

        user_achievement = self._update_user_achievement(user_achievement.id, **fields)
        if transitioned:
            self._on_achievement_unlocked(user_id, achievement)
        return user_achievement

    def _on_achievement_unlocked(self, user_id: int, achievement: Achievement) -> None:
        logger.info(
            f"Achievement unlocked: {achievement.name}",
            category=LogCategory.ACHIEVEMENT,
            user_id=user_id,
            extra={"achievement_id": achievement.id},
        )
        if achievement.badge_id is not None:
            self.award_badge(user_id, achievement.badge_id)

    def award_badge(self, user_id: int, badge_id: int) -> UserBadge:
        """Give a badge to a user at most once"""
        existing = self.get_user_badge(user_id, badge_id)
        if existing is not None:
            return existing

        validate_resource_exists(self.get_badge(badge_id), "Badge", badge_id)
        user_badge, created = self._insert_user_badge(user_id=user_id, badge_id=badge_id, earned_at=datetime.utcnow())
        if created:
            logger.info(
                f"Badge {badge_id} awarded",
                category=LogCategory.ACHIEVEMENT,
                user_id=user_id,
                extra={"badge_id": badge_id},
            )
        return user_badge

    # =========================================================================
    # NEWSLETTER AND CONTACT
    # =========================================================================

    def subscribe(self, email: str) -> Subscription:
        """Add an email to the newsletter list; an address already on it is a conflict"""
        email = email.strip().lower()
        if self.get_subscription_by_email(email) is not None:
            raise ConflictError("Email is already subscribed")

        subscription, created = self._insert_subscription(email=email, created_at=datetime.utcnow())
        if not created:
            raise ConflictError("Email is already subscribed")
        logger.info("Newsletter subscription added", category=LogCategory.BUSINESS, extra={"subscription_id": subscription.id})
        return subscription

    def submit_contact_message(self, name: str, email: str, subject: str, message: str) -> ContactMessage:
        contact = self.create_contact_message(
            name=name, email=email, subject=subject, message=message, created_at=datetime.utcnow()
        )
        logger.info("Contact message received", category=LogCategory.BUSINESS, extra={"contact_message_id": contact.id})
        return contact
