"""
Integration Tests for Learning Content Workflows
Catalog browsing, enrollment, lesson access and progress through the API
"""

import pytest
from fastapi import status


class TestCatalogWorkflow:
    """Public catalog endpoints"""

    def test_categories_and_instructors(self, client, seeded):
        response = client.get("/api/categories")
        assert response.status_code == status.HTTP_200_OK
        assert [c["name"] for c in response.json()] == ["Web Development", "Robotics"]

        response = client.get("/api/instructors")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()[0]["name"] == "Alex Nguyen"

    def test_list_courses_newest_first(self, client, seeded):
        response = client.get("/api/courses")

        assert response.status_code == status.HTTP_200_OK
        courses = response.json()
        assert [c["title"] for c in courses] == ["Coming Soon", "Advanced Databases", "Python Foundations"]
        assert courses[2]["lessonsCount"] == 3
        assert courses[2]["categories"][0]["name"] == "Web Development"
        assert courses[2]["isEnrolled"] is False

    def test_course_filters(self, client, seeded):
        response = client.get("/api/courses", params={"categoryId": seeded.category.id, "level": "all"})
        assert [c["id"] for c in response.json()] == [seeded.course.id]

        response = client.get("/api/courses", params={"categoryId": seeded.empty_category.id})
        assert response.json() == []

        response = client.get("/api/courses", params={"level": "advanced"})
        assert [c["title"] for c in response.json()] == ["Advanced Databases"]

        response = client.get("/api/courses", params={"search": "python"})
        assert [c["title"] for c in response.json()] == ["Python Foundations"]

        response = client.get("/api/courses", params={"limit": 2})
        assert len(response.json()) == 2

    def test_invalid_level_rejected(self, client, seeded):
        response = client.get("/api/courses", params={"level": "expert"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["success"] is False
        assert body["statusCode"] == 400
        assert body["detail"][0]["field"] == "level"

    def test_course_detail(self, client, seeded):
        response = client.get(f"/api/courses/{seeded.course.id}")

        assert response.status_code == status.HTTP_200_OK
        detail = response.json()
        assert detail["instructor"]["name"] == "Alex Nguyen"
        assert [len(m["lessons"]) for m in detail["modules"]] == [2, 1]
        assert detail["firstLessonId"] == seeded.lessons[0].id
        assert detail["videoDuration"] == 0.5
        assert detail["exercisesCount"] == 1
        assert detail["resourcesCount"] == 1
        assert detail["progress"] == 0

    def test_unknown_course(self, client, seeded):
        response = client.get("/api/courses/9999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "error": "Course not found", "statusCode": 404}

    def test_non_positive_id_is_validation_error(self, client, seeded):
        response = client.get("/api/courses/0")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_learning_paths(self, client, seeded, storage):
        path = storage.create_learning_path(title="Starter Path", description="First steps", order=1)
        storage.add_course_to_path(path.id, seeded.course.id, 1)
        path_id = path.id

        response = client.get("/api/learning-paths")
        assert response.status_code == status.HTTP_200_OK
        paths = response.json()
        assert [p["title"] for p in paths] == ["Starter Path"]
        assert paths[0]["courseCount"] == 1
        assert paths[0]["firstCourseId"] == seeded.course.id

        response = client.get(f"/api/learning-paths/{path_id}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["courses"][0]["title"] == "Python Foundations"

        assert client.get("/api/learning-paths/9999").status_code == status.HTTP_404_NOT_FOUND


class TestStudentWorkflow:
    """Enrollment, lesson access and completion for a signed-in student"""

    def test_lesson_requires_enrollment(self, client, seeded, auth_headers):
        lesson_id = seeded.lessons[0].id

        response = client.get(f"/api/lessons/{lesson_id}")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

        headers = auth_headers(seeded.student)
        response = client.get(f"/api/lessons/{lesson_id}", headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["success"] is False

        response = client.get("/api/lessons/9999", headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_enroll_then_read_lesson(self, client, seeded, auth_headers):
        headers = auth_headers(seeded.student)

        response = client.post("/api/enrollments", json={"courseId": seeded.course.id}, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        enrollment = response.json()
        assert enrollment["status"] == "active"

        response = client.post("/api/enrollments", json={"courseId": seeded.course.id}, headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == enrollment["id"]

        response = client.get(f"/api/lessons/{seeded.lessons[1].id}", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        lesson = response.json()
        assert lesson["courseId"] == seeded.course.id
        assert lesson["prevLessonId"] == seeded.lessons[0].id
        assert lesson["nextLessonId"] == seeded.lessons[2].id
        assert lesson["order"] == 2
        assert lesson["totalLessons"] == 3
        assert lesson["completed"] is False

        response = client.get(f"/api/courses/{seeded.course.id}", headers=headers)
        assert response.json()["isEnrolled"] is True
        assert client.get(f"/api/courses/{seeded.course.id}").json()["enrollmentCount"] == 1

    def test_enroll_unknown_course(self, client, seeded, auth_headers):
        response = client.post("/api/enrollments", json={"courseId": 9999}, headers=auth_headers(seeded.student))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_complete_course_unlocks_badge(self, client, seeded, auth_headers):
        headers = auth_headers(seeded.student)
        client.post("/api/enrollments", json={"courseId": seeded.course.id}, headers=headers)

        progress_values = []
        for lesson in seeded.lessons:
            response = client.post(f"/api/lessons/{lesson.id}/complete", headers=headers)
            assert response.status_code == status.HTTP_200_OK
            body = response.json()
            assert body["success"] is True
            assert body["progress"]["status"] == "completed"
            progress_values.append(body["courseProgress"])
        assert progress_values == [33, 67, 100]

        # completing again changes nothing
        response = client.post(f"/api/lessons/{seeded.lessons[0].id}/complete", headers=headers)
        assert response.json()["courseProgress"] == 100

        badges = client.get("/api/user/badges", headers=headers).json()
        assert [b["name"] for b in badges] == ["Course Finisher"]
        assert badges[0]["earnedAt"] is not None

        achievements = client.get("/api/user/achievements", headers=headers).json()
        assert achievements[0]["progress"] == 1
        assert achievements[0]["completed"] is True

        user = client.get("/api/user", headers=headers).json()
        assert user["stats"]["completedLessons"] == 3
        assert user["stats"]["completedCourses"] == 1
        assert user["stats"]["totalLearningTime"] == 30

        enrollments = client.get("/api/enrollments", headers=headers).json()
        assert enrollments[0]["status"] == "completed"
        assert enrollments[0]["progress"] == 100

    def test_achievements_listed_before_any_progress(self, client, seeded, auth_headers):
        achievements = client.get("/api/user/achievements", headers=auth_headers(seeded.other)).json()

        assert [a["name"] for a in achievements] == ["First Course Completed"]
        assert achievements[0]["progress"] == 0
        assert achievements[0]["completed"] is False
        assert achievements[0]["completedAt"] is None

    def test_recommended_courses(self, client, seeded, auth_headers):
        assert client.get("/api/courses/recommended").status_code == status.HTTP_401_UNAUTHORIZED

        headers = auth_headers(seeded.student)
        client.post("/api/enrollments", json={"courseId": seeded.course.id}, headers=headers)
        client.post(f"/api/lessons/{seeded.lessons[0].id}/complete", headers=headers)

        response = client.get("/api/courses/recommended", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        feed = response.json()
        assert [(c["id"], c["progress"]) for c in feed["inProgress"]] == [(seeded.course.id, 33)]
        assert [c["title"] for c in feed["recommended"]] == ["Coming Soon", "Advanced Databases"]


class TestReviewWorkflow:
    def test_review_requires_enrollment(self, client, seeded, auth_headers):
        headers = auth_headers(seeded.student)
        url = f"/api/courses/{seeded.course.id}/reviews"

        response = client.post(url, json={"rating": 5, "comment": "Great"}, headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        client.post("/api/enrollments", json={"courseId": seeded.course.id}, headers=headers)
        response = client.post(url, json={"rating": 4, "comment": "Solid"}, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["user"]["username"] == "student"

        reviews = client.get(url).json()
        assert [r["rating"] for r in reviews] == [4]
        assert client.get(f"/api/courses/{seeded.course.id}").json()["rating"] == 4.0

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, client, seeded, auth_headers, rating):
        headers = auth_headers(seeded.student)
        client.post("/api/enrollments", json={"courseId": seeded.course.id}, headers=headers)

        response = client.post(f"/api/courses/{seeded.course.id}/reviews", json={"rating": rating}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSystemEndpoints:
    def test_health(self, client, seeded):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_correlation_id_echoed(self, client, seeded):
        response = client.get("/", headers={"X-Correlation-ID": "trace-123"})

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["X-Correlation-ID"] == "trace-123"
