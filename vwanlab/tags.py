"""
Tagging utilities for resources created by the lab tooling.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

CREATED_BY = "VwanLabAutomation"
PURPOSE = "VWAN-Lab"


def provenance_tags(now: Optional[datetime] = None, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Generate provenance tags for a resource group created by this tool.

    Args:
        now: Creation timestamp; defaults to the current UTC time
        extra: Additional tags to include

    Returns:
        Dictionary of tags to apply to the resource group
    """
    now = now or datetime.now(timezone.utc)
    tags = {
        "CreatedBy": CREATED_BY,
        "CreatedDate": now.strftime("%Y-%m-%d"),
        "Purpose": PURPOSE,
    }

    if extra:
        tags.update(extra)

    return tags


def is_lab_resource(tags: Optional[Dict[str, str]]) -> bool:
    """
    Check if a resource was created by the lab tooling.

    Args:
        tags: Resource tags

    Returns:
        True if the provenance tags match
    """
    tags = tags or {}
    return tags.get("CreatedBy") == CREATED_BY and tags.get("Purpose") == PURPOSE
