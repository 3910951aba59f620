"""Shared request dependencies."""

from fastapi import Query, Request

from activity.service import ActivityService

def get_service(request: Request) -> ActivityService:
    """The ActivityService attached to the running app."""
    return request.app.state.service

def force_refresh(
    refresh: bool = Query(False, description="Bypass the cache and refetch from upstream"),
    force: bool = Query(False, description="Alias of refresh")
) -> bool:
    return refresh or force
