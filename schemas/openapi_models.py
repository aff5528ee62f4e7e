"""
OpenAPI Documentation Metadata
Tag groups and application metadata used when building the FastAPI app
"""


class OpenAPITags:
    """Centralized tag definitions for OpenAPI documentation"""

    AUTH = {
        "name": "Authentication",
        "description": "Registration, login and the current user's profile. Endpoints return a bearer session token.",
    }

    CATALOG = {
        "name": "Catalog",
        "description": """
        **Course Catalog**

        Categories, instructors, courses, reviews and learning paths.
        Course listing supports category, level and title filters with
        optional pagination. Authenticated callers also receive enrollment
        flags and progress.
        """,
    }

    STUDENT = {
        "name": "Student",
        "description": "Enrollments, lesson access and lesson completion for the signed-in student.",
    }

    REWARDS = {
        "name": "Rewards",
        "description": "Badges and achievements earned through course completion.",
    }

    ADMIN = {
        "name": "Admin",
        "description": "Course management for administrators: upload, edit and delete courses.",
    }

    OUTREACH = {
        "name": "Outreach",
        "description": "Newsletter subscriptions and contact form messages from site visitors.",
    }

    SYSTEM = {
        "name": "System",
        "description": "Service information and health checks.",
    }

    ALL = [AUTH, CATALOG, STUDENT, REWARDS, ADMIN, OUTREACH, SYSTEM]


class OpenAPIMetadata:
    """Application-level OpenAPI metadata"""

    TITLE = "LearnHub Course Platform API"
    VERSION = "1.0.0"
    DESCRIPTION = """
    Backend for an e-learning platform: course catalog, enrollments,
    lesson progress tracking, achievements and badges, plus an admin API
    for course management.

    Authenticate with `Authorization: Bearer <token>` using the token
    returned by `/api/login` or `/api/register`.
    """
