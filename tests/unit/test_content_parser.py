import json

import pytest

from models import LessonType
from utils.content_parser import looks_like_json, parse_course_content, parse_text_content
from utils.error_handling import ValidationError

TEXT_CONTENT = """# Getting Started
Everything you need before the first line of code.

## Installing Python
Download the installer.
Run it with default options.

## Your first script
print("hello")

# Control Flow
## Conditionals
if / elif / else
### Not a heading for us
"""


class TestTextFormat:
    def test_modules_and_lessons(self):
        modules = parse_course_content(TEXT_CONTENT.encode("utf-8"), "course.txt")

        assert [m.title for m in modules] == ["Getting Started", "Control Flow"]
        assert [len(m.lessons) for m in modules] == [2, 1]
        assert modules[0].description == "Everything you need before the first line of code."

        first = modules[0].lessons[0]
        assert first.title == "Installing Python"
        assert first.type == LessonType.TEXT
        assert first.content == {"text": "Download the installer.\nRun it with default options."}

    def test_deeper_headings_stay_in_body(self):
        modules = parse_text_content(TEXT_CONTENT)
        body = modules[1].lessons[0].content["text"]
        assert "### Not a heading for us" in body

    def test_lesson_before_any_module(self):
        modules = parse_text_content("## Orphan lesson\nsome text\n# Real module\n## Inside\n")

        assert [m.title for m in modules] == ["General", "Real module"]
        assert modules[0].lessons[0].title == "Orphan lesson"
        assert modules[1].lessons[0].content is None

    def test_bom_and_crlf(self):
        raw = "\ufeff# Module\r\n## Lesson\r\nline\r\n".encode("utf-8")
        modules = parse_course_content(raw, "content.md")

        assert modules[0].title == "Module"
        assert modules[0].lessons[0].content == {"text": "line"}

    def test_empty_file(self):
        assert parse_course_content(b"   \n", "empty.txt") == []


class TestJsonFormat:
    def test_object_with_modules(self):
        payload = {
            "modules": [
                {
                    "title": "Basics",
                    "description": "Start here",
                    "lessons": [
                        {"title": "Intro", "type": "video", "videoUrl": "https://example.com/v.mp4", "duration": "00:05:00"},
                        {"title": "Practice", "type": "exercise", "content": {"task": "sum two numbers"}},
                    ],
                }
            ]
        }
        modules = parse_course_content(json.dumps(payload).encode(), "content.json")

        lessons = modules[0].lessons
        assert modules[0].description == "Start here"
        assert lessons[0].type == LessonType.VIDEO
        assert lessons[0].video_url == "https://example.com/v.mp4"
        assert lessons[1].content == {"task": "sum two numbers"}

    def test_bare_list_detected_without_filename(self):
        raw = json.dumps([{"title": "Only module", "lessons": [{"title": "Only lesson"}]}]).encode()
        modules = parse_course_content(raw)

        assert modules[0].title == "Only module"
        assert modules[0].lessons[0].type == LessonType.TEXT

    def test_invalid_json(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_course_content(b'{"modules": [', "broken.json")
        assert exc_info.value.details[0]["field"] == "courseContentFile"

    def test_unknown_lesson_type(self):
        raw = json.dumps({"modules": [{"title": "M", "lessons": [{"title": "L", "type": "podcast"}]}]}).encode()
        with pytest.raises(ValidationError) as exc_info:
            parse_course_content(raw, "content.json")
        assert exc_info.value.details[0]["field"].startswith("courseContentFile.modules.0.lessons.0")

    def test_detection(self):
        assert looks_like_json("  [1]")
        assert looks_like_json("# Heading", "file.JSON")
        assert not looks_like_json("# Heading", "file.txt")
        assert not looks_like_json("[Draft] outline", "outline.txt")
        assert not looks_like_json("{}", "notes.md")


def test_non_utf8_upload():
    with pytest.raises(ValidationError):
        parse_course_content(b"\xff\xfe\x00bad", "content.txt")


class TestFormatSelection:
    def test_text_file_starting_with_bracket(self):
        raw = b"[Draft outline]\n# Module A\n## Lesson 1\nHello\n"
        modules = parse_course_content(raw, "outline.txt")

        assert [m.title for m in modules] == ["Module A"]
        assert modules[0].lessons[0].content == {"text": "Hello"}

    def test_json_extension_wins_over_content(self):
        with pytest.raises(ValidationError):
            parse_course_content(b"# Module\n## Lesson\n", "content.json")


class TestTextLimits:
    def test_overlong_module_heading(self):
        raw = ("# " + "M" * 600 + "\n## Lesson\nbody\n").encode()
        with pytest.raises(ValidationError) as exc_info:
            parse_course_content(raw, "outline.txt")

        assert exc_info.value.status_code == 400
        assert exc_info.value.details[0]["field"] == "courseContentFile.modules.0.title"

    def test_overlong_lesson_heading(self):
        raw = ("# Module\n## " + "L" * 600 + "\nbody\n").encode()
        with pytest.raises(ValidationError) as exc_info:
            parse_course_content(raw, "outline.txt")

        assert exc_info.value.details[0]["field"] == "courseContentFile.modules.0.lessons.0.title"
