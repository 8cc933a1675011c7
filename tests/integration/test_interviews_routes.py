from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from tests.utils import RecordingMailer, SeededUser, create_published_job, submit_application

SCHEDULE = {
    "scheduledAt": "2026-11-03T14:30:00Z",
    "duration": 45,
    "location": "Room 4",
}


def _application(client: TestClient, hr: SeededUser, applicant: SeededUser) -> dict:
    job = create_published_job(client, hr.headers)
    return submit_application(client, job["id"], applicant.headers).json()


def _schedule(client: TestClient, hr: SeededUser, application_id: str, **extra) -> dict:
    response = client.post(
        f"/applications/{application_id}/interviews",
        json={**SCHEDULE, **extra},
        headers=hr.headers,
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def test_schedule_moves_application_and_notifies(
    test_client: TestClient,
    hr_user: SeededUser,
    applicant_user: SeededUser,
    mailer: RecordingMailer,
) -> None:
    application = _application(test_client, hr_user, applicant_user)

    interview = _schedule(
        test_client,
        hr_user,
        application["id"],
        participants=[{"email": "panel@example.com"}, {"userId": hr_user.id}],
    )

    assert interview["status"] == "scheduled"
    assert interview["duration"] == 45
    refreshed = test_client.get(f"/applications/{application['id']}", headers=hr_user.headers)
    assert refreshed.json()["status"] == "interview"

    interview_mails = [m for m in mailer.sent if m.subject == "Interview Scheduled"]
    recipients = sorted(m.to[0] for m in interview_mails)
    assert recipients == sorted(["panel@example.com", hr_user.email])

    inbox = test_client.get("/notifications", headers=applicant_user.headers).json()
    assert [item["type"] for item in inbox["items"]] == ["interview_scheduled"]


def test_participant_needs_contact(
    test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
) -> None:
    application = _application(test_client, hr_user, applicant_user)

    response = test_client.post(
        f"/applications/{application['id']}/interviews",
        json={**SCHEDULE, "participants": [{}]},
        headers=hr_user.headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_schedule_requires_recruiter_role(
    test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
) -> None:
    application = _application(test_client, hr_user, applicant_user)

    response = test_client.post(
        f"/applications/{application['id']}/interviews",
        json=SCHEDULE,
        headers=applicant_user.headers,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_and_complete(
    test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
) -> None:
    application = _application(test_client, hr_user, applicant_user)
    interview = _schedule(test_client, hr_user, application["id"])

    updated = test_client.put(
        f"/interviews/{interview['id']}", json={"location": "Video call"}, headers=hr_user.headers
    )
    assert updated.json()["location"] == "Video call"

    completed = test_client.post(
        f"/interviews/{interview['id']}/complete",
        json={"evaluation": {"scores": {"technical": 4.5}, "notes": "Solid"}},
        headers=hr_user.headers,
    )
    assert completed.status_code == status.HTTP_200_OK
    assert completed.json()["status"] == "completed"
    assert completed.json()["evaluation"]["scores"] == {"technical": 4.5}

    again = test_client.post(
        f"/interviews/{interview['id']}/complete",
        json={"evaluation": {"notes": "Twice"}},
        headers=hr_user.headers,
    )
    assert again.status_code == status.HTTP_400_BAD_REQUEST


def test_update_echoing_current_status(
    test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
) -> None:
    application = _application(test_client, hr_user, applicant_user)
    interview = _schedule(test_client, hr_user, application["id"])

    response = test_client.put(
        f"/interviews/{interview['id']}",
        json={"status": interview["status"], "location": "Room 7"},
        headers=hr_user.headers,
    )

    assert response.status_code == status.HTTP_200_OK, response.text
    assert response.json()["status"] == interview["status"]
    assert response.json()["location"] == "Room 7"


def test_export_calendar(
    test_client: TestClient, hr_user: SeededUser, applicant_user: SeededUser
) -> None:
    application = _application(test_client, hr_user, applicant_user)
    interview = _schedule(test_client, hr_user, application["id"])

    response = test_client.get(f"/interviews/{interview['id']}/export", headers=hr_user.headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/calendar")
    assert response.headers["content-disposition"] == "attachment; filename=interview.ics"
    assert response.content.startswith(b"BEGIN:VCALENDAR")
    assert b"DTSTART:20261103T143000Z" in response.content


def test_missing_interview_is_404(test_client: TestClient, hr_user: SeededUser) -> None:
    response = test_client.get("/interviews/nope", headers=hr_user.headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
