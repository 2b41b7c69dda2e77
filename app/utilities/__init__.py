"""
Utilities package for the vidguard API.
"""

from .event_hub_handler import TenantEventHub, sse_format

__all__ = ["TenantEventHub", "sse_format"]
