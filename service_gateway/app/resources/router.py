"""
Generic CRUD router builder for mission control collections.
"""

import json
from typing import Any, Dict

from fastapi import APIRouter, Request, status

from shared.errors import DataStoreError, NotFoundError, ValidationError
from shared.logging import get_logger

from ..adapters.supabase_client import SupabaseClient
from .schema import ResourceSchema

logger = get_logger("gateway.resources")


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Parse the request body, which must be a JSON object."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")

    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def build_resource_router(schema: ResourceSchema, data_store: SupabaseClient, prefix: str = "/api/mc") -> APIRouter:
    """Build list/get/create/update/delete routes for one collection.

    Validation runs before any data store call. Single-row reads report
    every data store failure as 404; all other operations report 500.
    """
    router = APIRouter(prefix=f"{prefix.rstrip('/')}/{schema.name}", tags=[schema.name])

    @router.get("")
    async def list_rows(request: Request):
        filters = schema.list_filters(request.query_params)
        return await data_store.select(
            schema.table,
            filters=filters,
            order_by=schema.order_by,
            ascending=schema.ascending,
        )

    @router.get("/{row_id}")
    async def get_row(row_id: str):
        try:
            return await data_store.get(schema.table, row_id)
        except DataStoreError as exc:
            raise NotFoundError(exc.message) from exc

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_row(request: Request):
        body = await read_json_object(request)
        schema.validate_create(body)

        row = schema.build_row(body)
        created = await data_store.insert(schema.table, row)
        logger.info("Row created", resource=schema.name, row_id=row["id"])
        return created

    @router.patch("/{row_id}")
    async def update_row(row_id: str, request: Request):
        body = await read_json_object(request)
        schema.validate_update(body)

        updated = await data_store.update(schema.table, row_id, schema.build_changes(body))
        logger.info("Row updated", resource=schema.name, row_id=row_id, fields=sorted(body))
        return updated

    @router.delete("/{row_id}")
    async def delete_row(row_id: str):
        await data_store.delete(schema.table, row_id)
        logger.info("Row deleted", resource=schema.name, row_id=row_id)
        return {"deleted": True}

    return router
