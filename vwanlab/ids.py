"""
Deployment name generation utilities.
"""

from datetime import datetime, timezone
from typing import Optional

DEPLOYMENT_PREFIX = "vwanlab"


def new_deployment_name(now: Optional[datetime] = None) -> str:
    """
    Generate a deployment name in format: vwanlab-YYYYMMDD-HHMMSS

    Args:
        now: Timestamp to use; defaults to the current UTC time

    Returns:
        str: Timestamp-qualified deployment name
    """
    now = now or datetime.now(timezone.utc)
    return f"{DEPLOYMENT_PREFIX}-{now.strftime('%Y%m%d')}-{now.strftime('%H%M%S')}"


def is_valid_deployment_name(name: str) -> bool:
    """
    Validate deployment name format.

    Args:
        name: Name to validate

    Returns:
        bool: True if valid format
    """
    parts = name.split("-")
    if len(parts) != 3 or parts[0] != DEPLOYMENT_PREFIX:
        return False

    # Check date format (YYYYMMDD)
    if len(parts[1]) != 8 or not parts[1].isdigit():
        return False

    # Check time format (HHMMSS)
    if len(parts[2]) != 6 or not parts[2].isdigit():
        return False

    return True
