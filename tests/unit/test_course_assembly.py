from types import SimpleNamespace

import pytest

from models import LessonType
from utils.course_assembly import (
    build_course_detail,
    build_course_summary,
    build_learning_path,
    build_lesson_detail,
    parse_duration_seconds,
    round_half_up,
    video_duration_hours,
)


class TestDurationParsing:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("00:15:30", 930),
            ("01:00:00", 3600),
            ("2:05:09", 7509),
            ("00:20", 1200),
            ("01", 3600),
            ("aa:10:05", 605),
            ("", 0),
            (None, 0),
        ],
    )
    def test_parse_duration_seconds(self, value, expected):
        assert parse_duration_seconds(value) == expected

    def test_video_duration_counts_only_videos(self):
        lessons = [
            SimpleNamespace(type=LessonType.VIDEO, duration="00:15:30"),
            SimpleNamespace(type=LessonType.VIDEO, duration="00:20:15"),
            SimpleNamespace(type=LessonType.VIDEO, duration="00:18:45"),
            SimpleNamespace(type=LessonType.TEXT, duration="05:00:00"),
            SimpleNamespace(type=LessonType.VIDEO, duration=None),
        ]
        # 54.5 minutes
        assert video_duration_hours(lessons) == 0.9


class TestRounding:
    @pytest.mark.parametrize("value,expected", [(66.666, 67), (33.333, 33), (50.0, 50), (12.5, 13), (0.5, 1)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestCourseDetail:
    def test_anonymous_detail(self, storage, seeded):
        detail = build_course_detail(storage, seeded.course)

        assert detail["title"] == "Python Foundations"
        assert detail["level"] == "beginner"
        assert [m["title"] for m in detail["modules"]] == ["Getting Started", "Going Further"]
        assert [len(m["lessons"]) for m in detail["modules"]] == [2, 1]
        assert detail["instructor"]["name"] == "Alex Nguyen"
        assert [c["name"] for c in detail["categories"]] == ["Web Development"]
        assert detail["isEnrolled"] is False
        assert detail["progress"] == 0
        assert detail["lessonsCount"] == 3
        assert detail["completedLessons"] == 0
        assert detail["firstLessonId"] == seeded.lessons[0].id
        assert detail["videoDuration"] == 0.5
        assert detail["exercisesCount"] == 1
        assert detail["resourcesCount"] == 1

    def test_detail_for_enrolled_student(self, storage, seeded):
        storage.enroll_user(seeded.student.id, seeded.course.id)
        storage.mark_lesson_complete(seeded.student.id, seeded.lessons[1].id)

        detail = build_course_detail(storage, seeded.course, seeded.student.id)

        assert detail["isEnrolled"] is True
        assert detail["progress"] == 33
        assert detail["completedLessons"] == 1
        flags = [lesson["completed"] for module in detail["modules"] for lesson in module["lessons"]]
        assert flags == [False, True, False]

    def test_empty_course(self, storage, seeded):
        detail = build_course_detail(storage, seeded.empty_course, seeded.student.id)

        assert detail["modules"] == []
        assert detail["firstLessonId"] is None
        assert detail["progress"] == 0
        assert detail["instructor"] is None

    def test_summary(self, storage, seeded):
        summary = build_course_summary(storage, seeded.course, seeded.student.id)
        assert summary["lessonsCount"] == 3
        assert summary["isEnrolled"] is False


class TestLessonDetail:
    def test_navigation_across_modules(self, storage, seeded):
        first, second, third = seeded.lessons

        middle = build_lesson_detail(storage, second, seeded.course.id, seeded.student.id)
        assert middle["prevLessonId"] == first.id
        assert middle["nextLessonId"] == third.id
        assert middle["order"] == 2
        assert middle["totalLessons"] == 3
        assert middle["module"]["title"] == "Getting Started"

        last = build_lesson_detail(storage, third, seeded.course.id, seeded.student.id)
        assert last["prevLessonId"] == second.id
        assert last["nextLessonId"] is None
        assert last["module"]["title"] == "Going Further"

        opening = build_lesson_detail(storage, first, seeded.course.id, seeded.student.id)
        assert opening["prevLessonId"] is None
        assert opening["completed"] is False


class TestLearningPath:
    def test_path_progress_and_categories(self, storage, seeded):
        path = storage.create_learning_path(title="Backend Path", order=1)
        storage.add_course_to_path(path.id, seeded.course.id, 1)
        storage.add_course_to_path(path.id, seeded.second_course.id, 2)
        storage.add_course_to_path(path.id, seeded.course.id, 3)
        storage.set_course_categories(seeded.second_course.id, [seeded.category.id])

        storage.enroll_user(seeded.student.id, seeded.course.id)
        storage.mark_lesson_complete(seeded.student.id, seeded.lessons[0].id)

        data = build_learning_path(storage, path, seeded.student.id)

        assert [c["id"] for c in data["courses"]] == [seeded.course.id, seeded.second_course.id]
        assert data["courseCount"] == 2
        assert [c["name"] for c in data["categories"]] == ["Web Development"]
        # mean of 33 and 0
        assert data["progress"] == 17
        assert data["enrolled"] is True
        assert data["firstCourseId"] == seeded.course.id

    def test_anonymous_path(self, storage, seeded):
        path = storage.create_learning_path(title="Empty Path")
        data = build_learning_path(storage, path)

        assert data["courses"] == []
        assert data["progress"] == 0
        assert data["enrolled"] is False
        assert data["firstCourseId"] is None
