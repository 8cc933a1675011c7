"""RQ worker process for queued email delivery (``EMAIL_DELIVERY_MODE=queue``)."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from types import TracebackType

import structlog
from redis import Redis
from rq import Queue, Worker
from rq.job import Job

from hirehub.core.config import get_settings
from hirehub.core.logging import setup_logging
from hirehub.workers import jobs

logger = structlog.get_logger()

WORKER_NAME = "hirehub-worker"

REGISTERED_JOBS = {
    "send_email": jobs.send_email_job,
}


def log_job_failure(
    job: Job,
    exc_type: type[BaseException],
    exc_value: BaseException,
    traceback: TracebackType | None,
) -> bool:
    """Record the failure, then let RQ's default handler move the job to the failed registry."""
    logger.error(
        "worker_job_failed",
        job_id=job.id,
        func=job.func_name,
        error=exc_type.__name__,
        detail=str(exc_value),
    )
    return True


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, log_format=settings.log_format)
    redis_connection = Redis.from_url(settings.redis_url)
    queue_names = (settings.notifications_queue,)
    logger.info(
        "worker_bootstrap",
        queues=list(queue_names),
        jobs=list(REGISTERED_JOBS.keys()),
    )

    await asyncio.to_thread(_run_worker, redis_connection, queue_names)


def _run_worker(connection: Redis, queue_names: Sequence[str]) -> None:
    queues = [Queue(name, connection=connection) for name in queue_names]
    worker = Worker(
        queues,
        connection=connection,
        name=WORKER_NAME,
        exception_handlers=[log_job_failure],
    )
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    asyncio.run(main())
