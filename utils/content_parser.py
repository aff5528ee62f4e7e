"""
Course content file parsing for admin uploads

Two formats are accepted:

JSON, either ``{"modules": [...]}`` or a bare list of modules::

    {"modules": [{"title": "Basics", "lessons": [{"title": "Intro", "type": "video"}]}]}

Heading-delimited plain text::

    # Module title
    optional module description
    ## Lesson title
    lesson content text...

Every ``#`` line opens a module, every ``##`` line opens a lesson in the
current module and other lines accumulate into the current lesson's text.
"""

import json
import re
from typing import List, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from models import LessonType
from schemas.content import CourseContent, ParsedModule
from utils.error_handling import ValidationError, format_validation_errors
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("content_parser")

HEADING_RE = re.compile(r"^(#{1,2})(?!#)\s+(.*\S)\s*$")
DEFAULT_MODULE_TITLE = "General"
CONTENT_FIELD = "courseContentFile"


def _decode(raw: Union[bytes, str]) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("Content file must be UTF-8 text", field=CONTENT_FIELD)


def _join_block(lines: List[str]) -> Optional[str]:
    text = "\n".join(lines).strip("\n")
    return text if text.strip() else None


def looks_like_json(text: str, filename: Optional[str] = None) -> bool:
    """Decide by extension when a filename is known, by the first character otherwise"""
    if filename:
        return filename.lower().endswith(".json")
    return text.lstrip()[:1] in ("{", "[")


def _validate_modules(payload: dict) -> List[ParsedModule]:
    try:
        return CourseContent.model_validate(payload).modules
    except SchemaValidationError as e:
        details = format_validation_errors(e.errors())
        for detail in details:
            detail["field"] = f"{CONTENT_FIELD}.{detail['field']}"
        raise ValidationError("Invalid course content structure", details=details)


def parse_json_content(text: str) -> List[ParsedModule]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON content file: {e.msg} (line {e.lineno})", field=CONTENT_FIELD)

    if isinstance(payload, list):
        payload = {"modules": payload}
    if not isinstance(payload, dict):
        raise ValidationError("JSON content must be an object with 'modules' or a list of modules", field=CONTENT_FIELD)

    return _validate_modules(payload)


def parse_text_content(text: str) -> List[ParsedModule]:
    """Parse ``# Module`` / ``## Lesson`` headings into nested modules and lessons"""
    modules: List[dict] = []
    current_module: Optional[dict] = None
    current_lesson: Optional[dict] = None

    def open_module(title: str) -> dict:
        module = {"title": title, "description_lines": [], "lessons": []}
        modules.append(module)
        return module

    for line in text.splitlines():
        match = HEADING_RE.match(line.strip())
        if match:
            level, title = match.groups()
            if level == "#":
                current_module = open_module(title)
                current_lesson = None
            else:
                if current_module is None:
                    current_module = open_module(DEFAULT_MODULE_TITLE)
                current_lesson = {"title": title, "lines": []}
                current_module["lessons"].append(current_lesson)
            continue

        if current_lesson is not None:
            current_lesson["lines"].append(line.rstrip())
        elif current_module is not None:
            current_module["description_lines"].append(line.rstrip())
        # Text before the first heading has no home and is dropped

    payload = []
    for module in modules:
        lessons = []
        for lesson in module["lessons"]:
            body = _join_block(lesson["lines"])
            lessons.append({"title": lesson["title"], "type": LessonType.TEXT, "content": {"text": body} if body else None})
        payload.append(
            {"title": module["title"], "description": _join_block(module["description_lines"]), "lessons": lessons}
        )
    return _validate_modules({"modules": payload})


def parse_course_content(raw: Union[bytes, str], filename: Optional[str] = None) -> List[ParsedModule]:
    """Parse an uploaded content file into modules with ordered lessons"""
    text = _decode(raw)
    if not text.strip():
        return []

    if looks_like_json(text, filename):
        modules = parse_json_content(text)
        content_format = "json"
    else:
        modules = parse_text_content(text)
        content_format = "text"

    logger.info(
        "Parsed course content",
        category=LogCategory.UPLOAD,
        extra={
            "format": content_format,
            "filename": filename,
            "modules": len(modules),
            "lessons": sum(len(m.lessons) for m in modules),
        },
    )
    return modules
