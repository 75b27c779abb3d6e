"""
Non-resource routes of the Gateway: operator monitoring and third-party
pass-through.
"""

from .monitoring import build_monitoring_router
from .notion_proxy import build_notion_proxy_router

__all__ = [
    "build_monitoring_router",
    "build_notion_proxy_router",
]
