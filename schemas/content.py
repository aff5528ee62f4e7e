"""Course content parsed from an admin upload"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import LessonType


class ParsedLesson(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    type: LessonType = LessonType.TEXT
    content: Optional[Any] = None
    video_url: Optional[str] = Field(None, alias="videoUrl")
    duration: Optional[str] = Field(None, description="Video length as HH:MM:SS")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Lesson title cannot be empty")
        return v.strip()


class ParsedModule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    lessons: List[ParsedLesson] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Module title cannot be empty")
        return v.strip()


class CourseContent(BaseModel):
    modules: List[ParsedModule] = Field(default_factory=list)
