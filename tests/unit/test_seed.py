from types import SimpleNamespace

from scripts.seed import (
    ACHIEVEMENTS,
    CATEGORIES,
    COURSES,
    LEARNING_PATHS,
    get_relevant_categories,
    get_relevant_courses,
    seed_storage,
)
from storage import MemStorage
from utils.passwords import verify_password

CATEGORY_ROWS = [SimpleNamespace(id=index, name=c["name"]) for index, c in enumerate(CATEGORIES, start=1)]
CATEGORY_IDS = {c.name: c.id for c in CATEGORY_ROWS}


def category_names(title):
    ids = get_relevant_categories(title, CATEGORY_ROWS)
    return {c.name for c in CATEGORY_ROWS if c.id in ids}


class TestCategoryMatching:
    def test_keyword_matches(self):
        assert category_names("Introduction to Programming with Python") == {"Web Development"}
        assert category_names("Ethical Hacking and Network Security") == {"Cybersecurity", "Networking"}
        assert category_names("Machine Learning Basics with Python") == {"Web Development", "Artificial Intelligence"}
        assert category_names("Cybersecurity Fundamentals") == {"Cybersecurity"}

    def test_whole_word_matching(self):
        # "ai" must not match inside "containerization"
        assert category_names("Docker & Containerization") == {"Servers"}

    def test_fallback_to_first_category(self):
        assert get_relevant_categories("Complete Office Productivity", CATEGORY_ROWS) == [CATEGORY_IDS["Web Development"]]
        assert get_relevant_categories("Anything", []) == []


class TestPathMatching:
    courses = [SimpleNamespace(id=index, title=course[0]) for index, course in enumerate(COURSES, start=1)]

    def test_keyword_paths(self):
        ids = get_relevant_courses("Cybersecurity Path", self.courses)
        titles = [c.title for c in self.courses if c.id in ids]
        assert titles == ["Cybersecurity Fundamentals", "Ethical Hacking and Network Security"]

    def test_at_most_five_per_keyword(self):
        assert len(get_relevant_courses("Web Development Path", self.courses)) == 5

    def test_fallback_to_first_three(self):
        assert get_relevant_courses("Machine Learning and AI Path", self.courses) == [1, 2, 3]


class TestSeedStorage:
    def test_seed_populates_memory_storage(self):
        storage = MemStorage()
        created = seed_storage(storage)

        assert created["categories"] == len(CATEGORIES)
        assert created["courses"] == len(COURSES)
        assert created["paths"] == len(LEARNING_PATHS)
        assert created["achievements"] == len(ACHIEVEMENTS)

        admin = storage.get_user_by_username("admin")
        assert admin.role.value == "admin"
        assert verify_password("password", admin.password)

        first_course = storage.list_courses(search="Introduction to Programming with Python")[0]
        assert storage.count_course_lessons(first_course.id) > 0
        for course in storage.list_courses():
            assert storage.get_course_categories(course.id)

    def test_seed_is_idempotent(self):
        storage = MemStorage()
        seed_storage(storage)
        lessons_before = len(storage.lessons.all())

        created = seed_storage(storage)

        assert set(created.values()) == {0}
        assert len(storage.courses.all()) == len(COURSES)
        assert len(storage.lessons.all()) == lessons_before

    def test_seed_database_storage(self, db_storage):
        created = seed_storage(db_storage)

        assert created["users"] == 2
        assert len(db_storage.get_learning_paths()) == len(LEARNING_PATHS)
        assert all(db_storage.get_path_courses(p.id) for p in db_storage.get_learning_paths())
