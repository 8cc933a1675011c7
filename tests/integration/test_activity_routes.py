from __future__ import annotations

import csv
import io

from fastapi import status
from fastapi.testclient import TestClient

from tests.utils import SeededUser, create_published_job, submit_application


def _pipeline_with_one_application(
    client: TestClient, hr: SeededUser, applicant: SeededUser
) -> dict:
    job = create_published_job(client, hr.headers, title="Data Engineer", department="Data")
    return submit_application(client, job["id"], applicant.headers).json()


class TestNotifications:
    def test_mark_own_notification_read(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        _pipeline_with_one_application(test_client, hr_user, applicant_user)
        notification = test_client.get("/notifications", headers=hr_user.headers).json()["items"][0]
        assert notification["read"] is False

        response = test_client.put(
            f"/notifications/{notification['id']}/read", headers=hr_user.headers
        )
        unread = test_client.get(
            "/notifications", params={"unread": "true"}, headers=hr_user.headers
        ).json()

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["read"] is True
        assert unread["count"] == 0

    def test_someone_elses_notification_is_hidden(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        _pipeline_with_one_application(test_client, hr_user, applicant_user)
        notification = test_client.get("/notifications", headers=hr_user.headers).json()["items"][0]

        response = test_client.put(
            f"/notifications/{notification['id']}/read", headers=applicant_user.headers
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Notification not found"

    def test_requires_authentication(self, test_client: TestClient) -> None:
        assert test_client.get("/notifications").status_code == status.HTTP_401_UNAUTHORIZED


class TestAuditLogs:
    def test_admin_only(
        self, test_client: TestClient, admin_user: SeededUser, hr_user: SeededUser
    ) -> None:
        create_published_job(test_client, hr_user.headers)

        allowed = test_client.get(
            "/audit-logs", params={"targetType": "Job"}, headers=admin_user.headers
        )
        denied = test_client.get("/audit-logs", headers=hr_user.headers)

        assert allowed.status_code == status.HTTP_200_OK
        assert [item["action"] for item in allowed.json()["items"]] == [
            "publish_job",
            "create_job",
        ]
        assert denied.status_code == status.HTTP_403_FORBIDDEN

    def test_filter_by_actor(
        self,
        test_client: TestClient,
        admin_user: SeededUser,
        hr_user: SeededUser,
        applicant_user: SeededUser,
    ) -> None:
        _pipeline_with_one_application(test_client, hr_user, applicant_user)

        logs = test_client.get(
            "/audit-logs", params={"actorId": applicant_user.id}, headers=admin_user.headers
        ).json()

        assert [item["action"] for item in logs["items"]] == ["create_application"]


class TestReports:
    def test_csv_export(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        _pipeline_with_one_application(test_client, hr_user, applicant_user)

        response = test_client.get("/reports/export", headers=hr_user.headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/csv")
        assert (
            response.headers["content-disposition"]
            == "attachment; filename=applications_report.csv"
        )
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert len(rows) == 1
        assert rows[0]["job_title"] == "Data Engineer"
        assert rows[0]["email"] == applicant_user.email
        assert rows[0]["status"] == "pending"

    def test_csv_export_date_window(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        _pipeline_with_one_application(test_client, hr_user, applicant_user)

        response = test_client.get(
            "/reports/export", params={"to": "2000-01-01T00:00:00"}, headers=hr_user.headers
        )

        assert response.text.strip().splitlines() == [
            "candidate_name,email,job_title,department,status,resume,applied_at"
        ]

    def test_pipeline_metrics(
        self, test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
    ) -> None:
        application = _pipeline_with_one_application(test_client, hr_user, applicant_user)
        test_client.put(
            f"/applications/{application['id']}/status",
            json={"status": "in_review"},
            headers=hr_user.headers,
        )

        metrics = test_client.get("/reports/pipeline", headers=hr_user.headers).json()

        counts = {stage["status"]: stage["count"] for stage in metrics["pipeline"]}
        assert counts == {
            "pending": 0,
            "in_review": 1,
            "interview": 0,
            "offer": 0,
            "rejected": 0,
            "accepted": 0,
        }
        assert metrics["total"] == 1
        assert metrics["avg_time_to_offer_days"] == 0.0

    def test_reports_forbidden_for_applicants(
        self, test_client: TestClient, applicant_user: SeededUser
    ) -> None:
        response = test_client.get("/reports/pipeline", headers=applicant_user.headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
