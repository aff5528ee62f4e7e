"""Populate the catalog with demo categories, instructors, courses, paths, users and rewards.

Every insert is keyed on a natural key (name, title or username), so running
the script again only adds what is missing.

Usage:
  Run from the project root with the virtual environment activated, e.g.:
    python -m scripts.seed
"""

import os
import re
import sys
from typing import Dict, List

# Ensure project root is on the import path when running as a script
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from models import AchievementType, CourseLevel, LessonType, UserRole
from utils.passwords import hash_password
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("scripts.seed")

MAX_COURSES_PER_PATH = 5
FALLBACK_PATH_COURSES = 3
DEMO_PASSWORD = "password"

CATEGORIES = [
    {"name": "Web Development", "description": "Courses on building for the web", "icon_name": "code"},
    {"name": "Mobile Development", "description": "Courses on mobile app development", "icon_name": "smartphone"},
    {"name": "Databases", "description": "Designing and managing databases", "icon_name": "database"},
    {"name": "Networking", "description": "Computer networks and systems", "icon_name": "network"},
    {"name": "Servers", "description": "Server administration and deployment", "icon_name": "server"},
    {"name": "Cybersecurity", "description": "Security and network defense", "icon_name": "shield"},
    {"name": "Cloud Computing", "description": "Cloud platforms and virtualization", "icon_name": "cloud"},
    {"name": "Artificial Intelligence", "description": "AI and machine learning", "icon_name": "brain"},
]

# Category name -> title keywords; a course joins every category it matches
CATEGORY_KEYWORDS = [
    ("Web Development", ["python", "javascript", "programming", "web", "html", "css", "node.js", "react"]),
    ("Mobile Development", ["mobile", "android", "ios", "flutter", "react native"]),
    ("Databases", ["database", "databases", "sql", "nosql", "postgresql", "mongodb"]),
    ("Cybersecurity", ["security", "cybersecurity", "hacking", "ethical"]),
    ("Servers", ["server", "microservices", "docker", "containerization"]),
    ("Cloud Computing", ["cloud", "aws", "azure", "gcp"]),
    ("Artificial Intelligence", ["artificial intelligence", "ai", "machine learning", "deep learning", "data science"]),
    ("Networking", ["network", "networking", "tcp/ip", "linux", "command line"]),
]

# Path title keyword -> course title keywords
PATH_KEYWORDS = [
    ("web development", ["web", "javascript", "python", "html", "css", "react", "node"]),
    ("cybersecurity", ["security", "cybersecurity", "hacking", "ethical"]),
    ("cloud computing", ["cloud", "aws", "azure", "docker", "containerization"]),
]

INSTRUCTORS = [
    {
        "name": "Alex Nguyen",
        "title": "Senior Lecturer",
        "bio": "Over ten years of experience in web and mobile development. MSc in Computer Science.",
        "course_count": 5,
        "student_count": 1200,
        "review_score": 5.0,
    },
    {
        "name": "Beth Tran",
        "title": "Cybersecurity Specialist",
        "bio": "CISSP, CEH and OSCP certified with eight years at leading security firms.",
        "course_count": 3,
        "student_count": 850,
        "review_score": 5.0,
    },
    {
        "name": "Chris Le",
        "title": "Software Engineer",
        "bio": "Builds large-scale systems at a major technology company. Focused on software architecture and DevOps.",
        "course_count": 4,
        "student_count": 950,
        "review_score": 5.0,
    },
    {
        "name": "Dana Pham",
        "title": "Data Scientist",
        "bio": "Data science and machine learning practitioner with a PhD in applied statistics.",
        "course_count": 2,
        "student_count": 650,
        "review_score": 5.0,
    },
]

# (title, description, level, duration, enrollment count, instructor index)
COURSES = [
    ("Introduction to Programming with Python", "Learn the fundamentals of programming through Python.", "beginner", "20 hours", 350, 0),
    ("Web Development with JavaScript and Node.js", "Build full web applications with JavaScript on the client and server.", "intermediate", "40 hours", 280, 0),
    ("Cybersecurity Fundamentals", "Core concepts of protecting systems and networks.", "beginner", "25 hours", 210, 1),
    ("SQL and NoSQL Databases", "Relational and document databases from modelling to queries.", "intermediate", "30 hours", 190, 3),
    ("Microservices Architecture", "Design, deploy and operate services at scale.", "advanced", "35 hours", 120, 2),
    ("Cloud Computing with AWS", "Deploy and scale applications on Amazon Web Services.", "intermediate", "45 hours", 160, 2),
    ("Complete Office Productivity", "Documents, spreadsheets and presentations for everyday work.", "beginner", "25 hours", 400, 0),
    ("Logical Thinking and Algorithms", "Problem solving and algorithmic reasoning for beginners.", "beginner", "30 hours", 230, 3),
    ("HTML & CSS from Scratch", "Structure and style web pages from the ground up.", "beginner", "20 hours", 520, 0),
    ("Git and GitHub for Beginners", "Version control essentials and collaborative workflows.", "beginner", "15 hours", 610, 2),
    ("Advanced JavaScript and ES6+", "Modern language features, async patterns and tooling.", "intermediate", "25 hours", 260, 0),
    ("React.js from Basics to Advanced", "Components, hooks and state management with React.", "intermediate", "35 hours", 300, 0),
    ("Java Programming Basics", "Object-oriented programming with Java.", "beginner", "40 hours", 180, 2),
    ("Algorithms and Data Structures", "Classic algorithms and the structures behind them.", "intermediate", "45 hours", 240, 3),
    ("Linux & Command Line Basics", "Navigate and administer Linux systems from the shell.", "beginner", "20 hours", 330, 1),
    ("Docker & Containerization", "Package and run applications in containers.", "intermediate", "25 hours", 270, 2),
    ("Machine Learning Basics with Python", "Supervised and unsupervised learning with Python libraries.", "intermediate", "50 hours", 310, 3),
    ("Ethical Hacking and Network Security", "Offensive techniques for defensive security.", "advanced", "40 hours", 150, 1),
]

LEARNING_PATHS = [
    {"title": "Web Development Path", "description": "From HTML to full-stack JavaScript.", "duration": "100 hours", "order": 1},
    {"title": "Cybersecurity Path", "description": "Protect systems, networks and data.", "duration": "120 hours", "order": 2},
    {"title": "Cloud Computing Path", "description": "Containers, cloud platforms and operations.", "duration": "90 hours", "order": 3},
    {"title": "Machine Learning and AI Path", "description": "Data, models and intelligent systems.", "duration": "150 hours", "order": 4},
    {"title": "Beginner to Fullstack Developer Path", "description": "Everything needed to ship a web product.", "duration": "200 hours", "order": 5},
]

USERS = [
    {
        "username": "student",
        "display_name": "Demo Student",
        "email": "student@example.com",
        "role": UserRole.USER,
        "total_learning_time": 15,
        "completed_courses": 2,
        "completed_lessons": 28,
        "certificates": 1,
    },
    {"username": "admin", "display_name": "Administrator", "email": "admin@example.com", "role": UserRole.ADMIN},
]

BADGES = [
    {"name": "Course Finisher", "description": "Completed a full course", "type": "course", "points_required": 0},
    {"name": "Committed Learner", "description": "Completed five courses", "type": "course", "points_required": 0},
    {"name": "On a Roll", "description": "Logged in seven days in a row", "type": "streak", "points_required": 0},
]

# (name, description, icon, type, required count, badge name)
ACHIEVEMENTS = [
    ("First Course Completed", "Finish every lesson of a course", "award", AchievementType.COURSE_COMPLETION, 1, "Course Finisher"),
    ("Five Courses Completed", "Finish five courses", "trophy", AchievementType.COURSE_COMPLETION, 5, "Committed Learner"),
    ("Seven Day Streak", "Learn seven days in a row", "flame", AchievementType.LOGIN_STREAK, 7, "On a Roll"),
]

# Modules and lessons for the first course: (module title, description, lessons)
FIRST_COURSE_MODULES = [
    (
        "Introduction to Programming",
        "What programming is and how Python fits in",
        [
            {
                "title": "What is programming?",
                "description": "Programming and why it matters",
                "type": LessonType.VIDEO,
                "content": {
                    "sections": [
                        {"type": "paragraph", "content": "Programming is writing instructions for a computer to carry out."},
                        {"type": "heading", "title": "Why does programming matter?"},
                        {
                            "type": "list",
                            "items": [
                                "It automates repetitive tasks",
                                "It solves complex problems efficiently",
                                "It builds software people rely on",
                            ],
                        },
                    ]
                },
                "video_url": "https://www.youtube.com/embed/videos",
                "duration": "00:15:30",
            },
            {
                "title": "Installing Python and your editor",
                "description": "Set up a working development environment",
                "type": LessonType.TEXT,
                "content": {"sections": [{"type": "heading", "title": "Installing Python"}]},
            },
        ],
    ),
    (
        "Data and Variables",
        "Data types and variables in Python",
        [
            {
                "title": "Variables and data types",
                "description": "Numbers, strings and booleans",
                "type": LessonType.VIDEO,
                "content": {"sections": [{"type": "code", "language": "python", "content": "name = 'Ada'\nage = 36"}]},
                "video_url": "https://www.youtube.com/embed/videos",
                "duration": "00:20:15",
            },
            {
                "title": "Lists and dictionaries",
                "description": "Python's built-in collections",
                "type": LessonType.DOCUMENT,
                "content": {"sections": [{"type": "heading", "title": "Lists"}, {"type": "heading", "title": "Dictionaries"}]},
            },
        ],
    ),
    (
        "Control Flow",
        "Conditionals and loops",
        [
            {
                "title": "if / else statements",
                "description": "Branching on conditions",
                "type": LessonType.VIDEO,
                "content": {"sections": [{"type": "code", "language": "python", "content": "if age >= 18:\n    print('adult')"}]},
                "video_url": "https://www.youtube.com/embed/videos",
                "duration": "00:18:45",
            },
            {
                "title": "Loops in Python",
                "description": "for and while loops",
                "type": LessonType.TEXT,
                "content": {"sections": [{"type": "heading", "title": "for loops"}, {"type": "heading", "title": "while loops"}]},
            },
            {
                "title": "Practice exercises",
                "description": "Even/odd checks and running sums",
                "type": LessonType.EXERCISE,
                "content": {"sections": [{"type": "heading", "title": "Exercise 1: even or odd"}]},
            },
        ],
    ),
]


def _matches(keyword: str, text: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(keyword)}(?!\w)", text) is not None


def get_relevant_categories(title: str, categories: List) -> List[int]:
    """Category ids whose keywords occur in the course title; falls back to the first category"""
    lowered = title.lower()
    by_name = {category.name: category for category in categories}

    category_ids = []
    for category_name, keywords in CATEGORY_KEYWORDS:
        category = by_name.get(category_name)
        if category is None or category.id in category_ids:
            continue
        if any(_matches(keyword, lowered) for keyword in keywords):
            category_ids.append(category.id)

    if not category_ids and categories:
        category_ids.append(categories[0].id)
    return category_ids


def get_relevant_courses(path_title: str, courses: List) -> List[int]:
    """Course ids for a learning path by keyword; falls back to the first three courses"""
    lowered = path_title.lower()

    course_ids = []
    for path_keyword, course_keywords in PATH_KEYWORDS:
        if path_keyword not in lowered:
            continue
        matching = [c for c in courses if any(_matches(k, c.title.lower()) for k in course_keywords)]
        for course in matching[:MAX_COURSES_PER_PATH]:
            if course.id not in course_ids:
                course_ids.append(course.id)

    if not course_ids and courses:
        course_ids = [course.id for course in courses[:FALLBACK_PATH_COURSES]]
    return course_ids


def _find_course(storage, title: str):
    return next((c for c in storage.list_courses(search=title) if c.title == title), None)


def seed_storage(storage) -> Dict[str, int]:
    """Insert any missing seed rows and return how many of each kind were created"""
    created = {"categories": 0, "instructors": 0, "courses": 0, "paths": 0, "users": 0, "badges": 0, "achievements": 0}

    existing_categories = {c.name for c in storage.get_categories()}
    for category in CATEGORIES:
        if category["name"] not in existing_categories:
            storage.create_category(**category)
            created["categories"] += 1
    categories = storage.get_categories()

    existing_instructors = {i.name for i in storage.get_instructors()}
    for instructor in INSTRUCTORS:
        if instructor["name"] not in existing_instructors:
            storage.create_instructor(**instructor)
            created["instructors"] += 1
    instructors = {i.name: i for i in storage.get_instructors()}

    courses = []
    for title, description, level, duration, enrollment_count, instructor_index in COURSES:
        course = _find_course(storage, title)
        if course is None:
            course = storage.create_course(
                title=title,
                description=description,
                level=CourseLevel(level),
                duration=duration,
                price=0,
                enrollment_count=enrollment_count,
                instructor_id=instructors[INSTRUCTORS[instructor_index]["name"]].id,
            )
            storage.set_course_categories(course.id, get_relevant_categories(title, categories))
            created["courses"] += 1
        courses.append(course)

    existing_paths = {p.title for p in storage.get_learning_paths()}
    for path_data in LEARNING_PATHS:
        if path_data["title"] in existing_paths:
            continue
        path = storage.create_learning_path(**path_data)
        for order, course_id in enumerate(get_relevant_courses(path.title, courses), start=1):
            storage.add_course_to_path(path.id, course_id, order)
        created["paths"] += 1

    for user_data in USERS:
        if storage.get_user_by_username(user_data["username"]) is None:
            storage.create_user(password=hash_password(DEMO_PASSWORD), **user_data)
            created["users"] += 1

    existing_badges = {b.name for b in storage.get_badges()}
    for badge in BADGES:
        if badge["name"] not in existing_badges:
            storage.create_badge(**badge)
            created["badges"] += 1
    badges = {b.name: b for b in storage.get_badges()}

    existing_achievements = {a.name for a in storage.get_achievements()}
    for name, description, icon_name, achievement_type, required_count, badge_name in ACHIEVEMENTS:
        if name in existing_achievements:
            continue
        storage.create_achievement(
            name=name,
            description=description,
            icon_name=icon_name,
            type=achievement_type,
            required_count=required_count,
            badge_id=badges[badge_name].id if badge_name in badges else None,
        )
        created["achievements"] += 1

    first_course = courses[0] if courses else None
    if first_course is not None and not storage.get_modules_by_course(first_course.id):
        for module_order, (title, description, lessons) in enumerate(FIRST_COURSE_MODULES, start=1):
            module = storage.create_module(
                course_id=first_course.id, title=title, description=description, order=module_order
            )
            for lesson_order, lesson in enumerate(lessons, start=1):
                storage.create_lesson(module_id=module.id, order=lesson_order, **lesson)

    logger.info("Seed data applied", category=LogCategory.SYSTEM, extra=created)
    return created


def main() -> None:
    from db import SessionLocal, create_sqlite_schema
    from storage import DatabaseStorage

    create_sqlite_schema()

    db = SessionLocal()
    try:
        created = seed_storage(DatabaseStorage(db))
        for kind, count in created.items():
            print(f"Created {count} {kind}.")
        print("Seeding complete.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
