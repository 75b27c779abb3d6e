"""
Resource routers for the mission control collections.

Each collection (tasks, calendar events, content items, memories, team
members) is described by a ``ResourceSchema`` and served by the same
generic CRUD router.
"""

from .catalog import CALENDAR, CONTENT, MEMORIES, RESOURCES, TASKS, TEAM
from .router import build_resource_router
from .schema import ResourceSchema

__all__ = [
    "CALENDAR",
    "CONTENT",
    "MEMORIES",
    "RESOURCES",
    "TASKS",
    "TEAM",
    "ResourceSchema",
    "build_resource_router",
]
