"""
Mission control collections served by the gateway.
"""

from typing import Tuple

from .schema import ResourceSchema

TASK_STATUSES = ("backlog", "todo", "in_progress", "done", "cancelled")
TASK_PRIORITIES = ("none", "low", "medium", "high", "urgent")
EVENT_TYPES = ("task", "meeting", "deployment", "reminder", "milestone")
EVENT_STATUSES = ("scheduled", "in_progress", "completed", "cancelled")
CONTENT_STAGES = ("idea", "draft", "review", "scheduled", "published")
MEMORY_CATEGORIES = ("decision", "learning", "context", "reference")
AGENT_STATUSES = ("active", "idle", "offline")

# Table probed by the monitoring endpoint
PROBE_TABLE = "mc_tasks"


TASKS = ResourceSchema(
    name="tasks",
    table="mc_tasks",
    required=("title",),
    enums={"status": TASK_STATUSES, "priority": TASK_PRIORITIES},
    defaults={
        "description": "",
        "status": "backlog",
        "priority": "none",
        "assignee_id": "",
        "labels": [],
        "project_id": "",
    },
    filters={"status": "status", "projectId": "project_id"},
    order_by="updated_at",
    ascending=False,
    tracks_updated_at=True,
)

CALENDAR = ResourceSchema(
    name="calendar",
    table="mc_calendar_events",
    required=("title", "type", "start_date", "end_date"),
    enums={"type": EVENT_TYPES, "status": EVENT_STATUSES},
    defaults={
        "status": "scheduled",
        "execution_result": "",
        "project_id": "",
    },
    filters={"type": "type", "status": "status", "projectId": "project_id"},
    order_by="start_date",
    ascending=True,
)

CONTENT = ResourceSchema(
    name="content",
    table="mc_content_pipeline",
    required=("title",),
    enums={"stage": CONTENT_STAGES},
    defaults={
        "stage": "idea",
        "platform": "",
        "script": "",
        "media_urls": [],
        "scheduled_date": None,
        "project_id": "",
    },
    filters={"stage": "stage", "platform": "platform", "projectId": "project_id"},
    order_by="created_at",
    ascending=False,
)

MEMORIES = ResourceSchema(
    name="memories",
    table="mc_memories",
    required=("title", "content", "category"),
    enums={"category": MEMORY_CATEGORIES},
    defaults={
        "source": "",
        "project_id": "",
    },
    filters={"category": "category", "projectId": "project_id"},
    order_by="created_at",
    ascending=False,
)

TEAM = ResourceSchema(
    name="team",
    table="mc_team_agents",
    required=("name", "role"),
    enums={"status": AGENT_STATUSES},
    defaults={
        "responsibilities": "",
        "status": "idle",
        "avatar_url": "",
        "task_history": [],
        "project_id": "",
    },
    filters={"status": "status", "projectId": "project_id"},
    order_by="updated_at",
    ascending=False,
    tracks_updated_at=True,
)

RESOURCES: Tuple[ResourceSchema, ...] = (TASKS, CALENDAR, CONTENT, MEMORIES, TEAM)
