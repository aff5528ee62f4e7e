from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Boolean, JSON, Text, Float
from sqlalchemy import Table, UniqueConstraint, Index, CheckConstraint
from sqlalchemy.orm import declarative_base, relationship
import enum
from datetime import datetime

Base = declarative_base()


class UserRole(enum.Enum):
    USER = "user"
    ADMIN = "admin"


class CourseLevel(enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class LessonType(enum.Enum):
    VIDEO = "video"
    TEXT = "text"
    QUIZ = "quiz"
    EXERCISE = "exercise"
    RESOURCE = "resource"
    DOCUMENT = "document"


class EnrollmentStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ProgressStatus(enum.Enum):
    STARTED = "started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AchievementType(enum.Enum):
    LOGIN_STREAK = "login_streak"
    COURSE_COMPLETION = "course_completion"
    PERFECT_QUIZ = "perfect_quiz"
    COMMUNITY_CONTRIBUTION = "community_contribution"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # passlib hash
    email = Column(String, unique=True, index=True, nullable=True)
    display_name = Column(String, nullable=True)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    avatar_url = Column(String, nullable=True)

    # Aggregate stats, recomputed from progress and enrollments
    total_learning_time = Column(Integer, default=0, nullable=False)  # minutes
    completed_courses = Column(Integer, default=0, nullable=False)
    completed_lessons = Column(Integer, default=0, nullable=False)
    certificates = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon_name = Column(String, nullable=True)


class Instructor(Base):
    __tablename__ = "instructors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    title = Column(String, nullable=True)  # e.g. "Senior Python Developer"
    bio = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    course_count = Column(Integer, default=0, nullable=False)
    student_count = Column(Integer, default=0, nullable=False)
    review_score = Column(Float, default=0.0, nullable=False)


course_categories = Table(
    "course_categories",
    Base.metadata,
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)  # relative path under the uploads directory
    level = Column(Enum(CourseLevel), default=CourseLevel.BEGINNER, nullable=False)
    duration = Column(String, nullable=True)  # display label, e.g. "8 weeks"
    price = Column(Integer, default=0, nullable=False)
    original_price = Column(Integer, nullable=True)
    enrollment_count = Column(Integer, default=0, nullable=False)
    rating = Column(Float, nullable=True)
    instructor_id = Column(Integer, ForeignKey("instructors.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    instructor = relationship("Instructor", backref="courses")
    categories = relationship("Category", secondary=course_categories, backref="courses")
    modules = relationship("Module", order_by="Module.order", back_populates="course", passive_deletes=True)

    __table_args__ = (Index("idx_courses_created_at", "created_at"),)


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False)

    course = relationship("Course", back_populates="modules")
    lessons = relationship("Lesson", order_by="Lesson.order", back_populates="module", passive_deletes=True)

    __table_args__ = (Index("idx_modules_course_order", "course_id", "order"),)


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(LessonType), default=LessonType.TEXT, nullable=False)
    content = Column(JSON, nullable=True)
    video_url = Column(String, nullable=True)
    duration = Column(String, nullable=True)  # "HH:MM:SS"
    order = Column(Integer, nullable=False)

    module = relationship("Module", back_populates="lessons")

    __table_args__ = (Index("idx_lessons_module_order", "module_id", "order"),)


class LearningPath(Base):
    __tablename__ = "learning_paths"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PathCourse(Base):
    __tablename__ = "path_courses"

    id = Column(Integer, primary_key=True, index=True)
    path_id = Column(Integer, ForeignKey("learning_paths.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    order = Column(Integer, nullable=False)

    __table_args__ = (UniqueConstraint("path_id", "course_id", name="unique_path_course"),)


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    enrolled_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    status = Column(Enum(EnrollmentStatus), default=EnrollmentStatus.ACTIVE, nullable=False)

    # Ensure unique enrollment per user-course pair
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="unique_user_course_enrollment"),
        Index("idx_enrollments_course", "course_id"),
    )


class Progress(Base):
    __tablename__ = "progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)  # denormalized
    status = Column(Enum(ProgressStatus), default=ProgressStatus.COMPLETED, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="unique_user_lesson_progress"),
        Index("idx_progress_user_course", "user_id", "course_id"),
    )


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (CheckConstraint("rating >= 1 AND rating <= 5", name="check_review_rating_range"),)


class Badge(Base):
    __tablename__ = "badges"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    type = Column(String, nullable=True)  # e.g. "course", "streak", "community"
    points_required = Column(Integer, default=0, nullable=False)


class UserBadge(Base):
    __tablename__ = "user_badges"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id = Column(Integer, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    earned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="unique_user_badge"),)


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon_name = Column(String, nullable=True)
    type = Column(Enum(AchievementType), nullable=False, index=True)
    required_count = Column(Integer, default=1, nullable=False)
    badge_id = Column(Integer, ForeignKey("badges.id", ondelete="SET NULL"), nullable=True)


class UserAchievement(Base):
    __tablename__ = "user_achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id = Column(Integer, ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "achievement_id", name="unique_user_achievement"),)


class Subscription(Base):
    """Newsletter signup"""

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
