from __future__ import annotations

from types import SimpleNamespace

from hirehub.workers import jobs
from hirehub.workers.worker import REGISTERED_JOBS, log_job_failure


def test_send_email_is_registered() -> None:
    assert REGISTERED_JOBS == {"send_email": jobs.send_email_job}


def test_failure_handler_falls_through_to_rq_default() -> None:
    job = SimpleNamespace(id="job-9", func_name="hirehub.workers.jobs.send_email_job")
    error = RuntimeError("resend down")

    assert log_job_failure(job, RuntimeError, error, None) is True  # type: ignore[arg-type]
