"""
Operator monitoring endpoint.

Aggregates process information, a liveness probe of the data store and
the request metrics snapshot. A failing probe only degrades the data store
entry; the endpoint itself always answers 200.
"""

import platform
import sys
import time
from typing import Any, Dict

import psutil
from fastapi import APIRouter

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters.supabase_client import SupabaseClient

API_SERVICE_NAME = "AURIA API"
DATA_STORE_SERVICE_NAME = "Supabase"

BYTES_PER_MB = 1024 * 1024

logger = get_logger("gateway.monitoring")


def collect_system_info() -> Dict[str, Any]:
    """Process uptime and memory.

    ``heapUsedMB`` is the process resident set size and ``heapTotalMB`` the
    physical memory of the host, both in whole MiB.
    """
    process = psutil.Process()
    resident = process.memory_info().rss
    physical = psutil.virtual_memory().total
    return {
        "uptime": int(time.time() - process.create_time()),
        "runtimeVersion": platform.python_version(),
        "platform": sys.platform,
        "heapUsedMB": round(resident / BYTES_PER_MB),
        "heapTotalMB": round(physical / BYTES_PER_MB),
    }


async def probe_data_store(data_store: SupabaseClient, table: str) -> Dict[str, Any]:
    """Ping the data store and describe the outcome as a service entry."""
    start = time.perf_counter()
    try:
        await data_store.ping(table)
    except Exception as exc:
        latency = int((time.perf_counter() - start) * 1000)
        logger.warning("Data store probe failed", error=str(exc), latency_ms=latency)
        return {
            "name": DATA_STORE_SERVICE_NAME,
            "status": "error",
            "latency": latency,
            "error": str(exc) or "Unknown error",
        }

    latency = int((time.perf_counter() - start) * 1000)
    return {"name": DATA_STORE_SERVICE_NAME, "status": "connected", "latency": latency}


def build_monitoring_router(
    metrics: MetricsCollector,
    data_store: SupabaseClient,
    probe_table: str,
    prefix: str = "/api",
) -> APIRouter:
    router = APIRouter(prefix=prefix.rstrip("/"), tags=["monitoring"])

    @router.get("/monitoring")
    async def monitoring():
        api_service = {"name": API_SERVICE_NAME, "status": "connected", "latency": 0}
        data_store_service = await probe_data_store(data_store, probe_table)

        return {
            "system": collect_system_info(),
            "services": [api_service, data_store_service],
            "metrics": metrics.get_metrics(),
            "logs": [entry.to_dict() for entry in metrics.get_logs()],
        }

    return router
