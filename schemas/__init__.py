# Schemas package for FastAPI validation
from .validation import *
from .content import CourseContent, ParsedLesson, ParsedModule
