from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from hirehub.infrastructure.cache import CacheKeys
from tests.utils import (
    InMemoryCache,
    RecordingMailer,
    SeededUser,
    count_rows,
    create_published_job,
    drop_table,
    submit_application,
)

JOB = {
    "title": "Backend Engineer",
    "description": "Build and operate the recruitment platform APIs.",
    "department": "Engineering",
}


class TestJobCrud:
    def test_create_job_defaults(self, test_client: TestClient, hr_user: SeededUser) -> None:
        response = test_client.post("/jobs", json=JOB, headers=hr_user.headers)

        assert response.status_code == status.HTTP_201_CREATED
        job = response.json()
        assert job["status"] == "draft"
        assert job["visibility"] == "public"
        assert job["job_type"] == "CDI"
        assert job["location"] == "Remote"
        assert job["created_by"]["id"] == hr_user.id
        assert job["created_by"]["first_name"] == "Helen"

    def test_get_job_is_public(self, test_client: TestClient, hr_user: SeededUser) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]

        response = test_client.get(f"/jobs/{job_id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["title"] == "Backend Engineer"

    def test_update_job_fields(self, test_client: TestClient, hr_user: SeededUser) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]

        response = test_client.put(
            f"/jobs/{job_id}",
            json={"salaryRange": "60-70k", "tags": ["python"], "jobType": "CDD"},
            headers=hr_user.headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["salary_range"] == "60-70k"
        assert response.json()["job_type"] == "CDD"
        assert response.json()["tags"] == ["python"]

    def test_update_echoing_current_status(
        self, test_client: TestClient, hr_user: SeededUser
    ) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]

        response = test_client.put(
            f"/jobs/{job_id}",
            json={"title": "Backend Engineer II", "status": "draft"},
            headers=hr_user.headers,
        )

        assert response.status_code == status.HTTP_200_OK, response.text
        assert response.json()["title"] == "Backend Engineer II"
        assert response.json()["status"] == "draft"

    def test_empty_update_is_rejected(self, test_client: TestClient, hr_user: SeededUser) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]

        response = test_client.put(f"/jobs/{job_id}", json={}, headers=hr_user.headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_publish_and_close_lifecycle(
        self, test_client: TestClient, hr_user: SeededUser
    ) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]

        closed_early = test_client.post(f"/jobs/{job_id}/close", headers=hr_user.headers)
        assert closed_early.status_code == status.HTTP_400_BAD_REQUEST

        published = test_client.post(f"/jobs/{job_id}/publish", headers=hr_user.headers)
        assert published.json()["status"] == "published"

        closed = test_client.post(f"/jobs/{job_id}/close", headers=hr_user.headers)
        assert closed.json()["status"] == "closed"

    def test_missing_job_is_404(self, test_client: TestClient) -> None:
        response = test_client.get("/jobs/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Job not found"


class TestJobPermissions:
    def test_create_requires_token(self, test_client: TestClient) -> None:
        response = test_client.post("/jobs", json=JOB)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert count_rows(test_client, "jobs") == 0
        assert count_rows(test_client, "audit_logs") == 0

    def test_create_rejects_garbage_token(self, test_client: TestClient) -> None:
        response = test_client.post("/jobs", json=JOB, headers={"Authorization": "Bearer nope"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert count_rows(test_client, "jobs") == 0

    def test_applicant_cannot_create(
        self, test_client: TestClient, applicant_user: SeededUser
    ) -> None:
        response = test_client.post("/jobs", json=JOB, headers=applicant_user.headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert count_rows(test_client, "jobs") == 0
        assert count_rows(test_client, "audit_logs") == 0

    def test_role_check_runs_before_validation(
        self, test_client: TestClient, applicant_user: SeededUser
    ) -> None:
        response = test_client.post("/jobs", json={}, headers=applicant_user.headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_validation_lists_every_field(
        self, test_client: TestClient, hr_user: SeededUser
    ) -> None:
        response = test_client.post(
            "/jobs", json={"title": "BE", "jobType": "Freelance"}, headers=hr_user.headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"title", "description", "department", "jobType"} <= fields
        assert count_rows(test_client, "jobs") == 0
        assert count_rows(test_client, "audit_logs") == 0


class TestJobListing:
    def test_pagination_envelope(self, test_client: TestClient, hr_user: SeededUser) -> None:
        for index in range(3):
            test_client.post(
                "/jobs", json={**JOB, "title": f"Engineer {index}"}, headers=hr_user.headers
            )

        response = test_client.get("/jobs", params={"limit": 2, "page": 2})

        body = response.json()
        assert body["count"] == 3
        assert body["page"] == 2
        assert body["limit"] == 2
        assert body["total_pages"] == 2
        assert len(body["items"]) == 1

    def test_search_and_filters(self, test_client: TestClient, hr_user: SeededUser) -> None:
        test_client.post("/jobs", json={**JOB, "tags": ["kubernetes"]}, headers=hr_user.headers)
        test_client.post(
            "/jobs",
            json={
                "title": "Payroll Specialist",
                "description": "Own the monthly payroll cycle.",
                "department": "Finance",
                "visibility": "internal",
            },
            headers=hr_user.headers,
        )

        by_tag = test_client.get("/jobs", params={"q": "kubernetes"}).json()
        by_department = test_client.get("/jobs", params={"department": "Finance"}).json()
        by_visibility = test_client.get("/jobs", params={"visibility": "internal"}).json()

        assert [job["title"] for job in by_tag["items"]] == ["Backend Engineer"]
        assert [job["title"] for job in by_department["items"]] == ["Payroll Specialist"]
        assert by_visibility["count"] == 1

    def test_unknown_sort_field_is_rejected(self, test_client: TestClient) -> None:
        response = test_client.get("/jobs", params={"sort": "-hashed_password"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_default_listing_is_cached_and_invalidated(
        self, test_client: TestClient, hr_user: SeededUser, cache: InMemoryCache
    ) -> None:
        test_client.post("/jobs", json=JOB, headers=hr_user.headers)

        first = test_client.get("/jobs").json()
        assert CacheKeys.JOBS_ALL in cache.entries
        hits_before = cache.hits
        second = test_client.get("/jobs").json()
        assert second == first
        assert cache.hits == hits_before + 1

        test_client.post("/jobs", json={**JOB, "title": "Data Engineer"}, headers=hr_user.headers)

        assert CacheKeys.JOBS_ALL not in cache.entries
        assert test_client.get("/jobs").json()["count"] == 2

    def test_filtered_page_stays_stale_until_ttl(
        self, test_client: TestClient, hr_user: SeededUser, cache: InMemoryCache
    ) -> None:
        params = {"department": "Engineering", "limit": 5}
        test_client.post("/jobs", json=JOB, headers=hr_user.headers)

        first = test_client.get("/jobs", params=params).json()
        hits_before = cache.hits
        second = test_client.get("/jobs", params=dict(reversed(list(params.items())))).json()
        assert cache.hits == hits_before + 1
        assert second == first

        test_client.post("/jobs", json={**JOB, "title": "Data Engineer"}, headers=hr_user.headers)

        # Only the aggregate key is invalidated; this filtered page expires with its TTL
        stale = test_client.get("/jobs", params=params).json()
        assert stale["count"] == 1
        assert test_client.get("/jobs").json()["count"] == 2

    def test_listing_works_without_cache(
        self, test_client: TestClient, hr_user: SeededUser, cache: InMemoryCache
    ) -> None:
        test_client.post("/jobs", json=JOB, headers=hr_user.headers)
        cache.available = False

        response = test_client.get("/jobs")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 1


class TestSoftDelete:
    def test_deleted_job_disappears_but_audit_remains(
        self,
        test_client: TestClient,
        hr_user: SeededUser,
        admin_user: SeededUser,
    ) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]

        deleted = test_client.delete(f"/jobs/{job_id}", headers=hr_user.headers)
        assert deleted.status_code == status.HTTP_204_NO_CONTENT

        assert test_client.get(f"/jobs/{job_id}").status_code == status.HTTP_404_NOT_FOUND
        assert test_client.get("/jobs").json()["count"] == 0
        assert test_client.delete(
            f"/jobs/{job_id}", headers=hr_user.headers
        ).status_code == status.HTTP_404_NOT_FOUND

        trail = test_client.get(
            "/audit-logs", params={"targetId": job_id}, headers=admin_user.headers
        ).json()
        assert [entry["action"] for entry in trail["items"]] == ["delete_job", "create_job"]


class TestApply:
    def test_apply_to_published_job(
        self,
        test_client: TestClient,
        hr_user: SeededUser,
        applicant_user: SeededUser,
        mailer: RecordingMailer,
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)

        response = submit_application(test_client, job["id"], applicant_user.headers)

        assert response.status_code == status.HTTP_201_CREATED, response.text
        application = response.json()
        assert application["status"] == "pending"
        assert application["job"]["title"] == "Backend Engineer"
        assert application["candidate"]["email"] == applicant_user.email
        assert application["candidate"]["name"] == "Alan Turing"
        assert application["resume"].endswith(".pdf")
        assert {"Application Received", "New Application"} <= set(mailer.subjects())

    def test_apply_requires_authentication(
        self, test_client: TestClient, hr_user: SeededUser
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)
        audit_before = count_rows(test_client, "audit_logs")

        response = submit_application(test_client, job["id"], {})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert count_rows(test_client, "applications") == 0
        assert count_rows(test_client, "audit_logs") == audit_before

    def test_apply_to_draft_job_conflicts(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]

        response = submit_application(test_client, job_id, applicant_user.headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Job is not accepting applications"

    def test_duplicate_application_conflicts(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)
        submit_application(test_client, job["id"], applicant_user.headers)

        response = submit_application(test_client, job["id"], applicant_user.headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_upload_and_form_errors_are_aggregated(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)

        response = submit_application(
            test_client,
            job["id"],
            applicant_user.headers,
            filename="resume.exe",
            candidateEmail="not-an-email",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        fields = [error["field"] for error in response.json()["errors"]]
        assert "resume" in fields
        assert any("andidate" in field for field in fields)

    def test_form_fields_accept_snake_case(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)

        response = test_client.post(
            f"/jobs/{job['id']}/apply",
            headers=applicant_user.headers,
            files={"resume": ("resume.pdf", b"%PDF-1.4 candidate resume", "application/pdf")},
            data={"cover_letter": "Snake case works too.", "candidate_name": "Alan M. Turing"},
        )

        assert response.status_code == status.HTTP_201_CREATED, response.text
        assert response.json()["cover_letter"] == "Snake case works too."
        assert response.json()["candidate"]["name"] == "Alan M. Turing"

    def test_oversized_resume_is_rejected(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)

        response = submit_application(
            test_client, job["id"], applicant_user.headers, content=b"x" * (1024 * 1024 + 1)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == [
            {"field": "resume", "message": "Resume exceeds 1048576 bytes"}
        ]
        assert count_rows(test_client, "applications") == 0

    def test_missing_resume_is_rejected(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)

        response = test_client.post(
            f"/jobs/{job['id']}/apply",
            headers=applicant_user.headers,
            data={"coverLetter": "Hello"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "resume"


class TestSideEffectFailures:
    def test_publish_succeeds_when_audit_write_fails(
        self, test_client: TestClient, hr_user: SeededUser
    ) -> None:
        job_id = test_client.post("/jobs", json=JOB, headers=hr_user.headers).json()["id"]
        drop_table(test_client, "audit_logs")

        response = test_client.post(f"/jobs/{job_id}/publish", headers=hr_user.headers)

        assert response.status_code == status.HTTP_200_OK, response.text
        assert response.json()["status"] == "published"
        assert test_client.get(f"/jobs/{job_id}").json()["status"] == "published"

    def test_apply_succeeds_when_notification_write_fails(
        self,
        test_client: TestClient,
        hr_user: SeededUser,
        applicant_user: SeededUser,
        mailer: RecordingMailer,
    ) -> None:
        job = create_published_job(test_client, hr_user.headers)
        drop_table(test_client, "notifications")

        response = submit_application(test_client, job["id"], applicant_user.headers)

        assert response.status_code == status.HTTP_201_CREATED, response.text
        assert response.json()["status"] == "pending"
        assert {"Application Received", "New Application"} <= set(mailer.subjects())
        assert count_rows(test_client, "audit_logs") == 3
