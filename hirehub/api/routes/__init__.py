from fastapi import FastAPI

from . import (
    applications,
    audit_logs,
    auth,
    health,
    interviews,
    jobs,
    notifications,
    realtime,
    reports,
    users,
)


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(jobs.router)
    app.include_router(applications.router)
    app.include_router(interviews.router)
    app.include_router(users.router)
    app.include_router(notifications.router)
    app.include_router(audit_logs.router)
    app.include_router(reports.router)
    app.include_router(realtime.router)
