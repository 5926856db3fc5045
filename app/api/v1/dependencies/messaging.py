"""Event bus and job queue dependencies (process-wide, created in lifespan)."""

from fastapi import Request

from app.application.interfaces.services import IEventBus, IJobQueue


def get_event_bus(request: Request) -> IEventBus:
    return request.app.state.event_bus


def get_job_queue(request: Request) -> IJobQueue:
    return request.app.state.job_queue
