"""
String heuristics used to classify provider state.

The provider does not expose these as typed fields, so each rule lives in
one named function that can be swapped out if it ever does.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Optional

UNKNOWN = "Unknown"

POWER_STATE_PREFIX = "PowerState"
RUNNING_MARKER = "running"
ROUTE_SERVER_MARKER = "route-server"
VM_TYPE_TAG = "VmType"

# Bicep sources have to be compiled before the management API accepts them.
DECLARATIVE_PARAMETERS_SUFFIX = ".bicepparam"
DECLARATIVE_TEMPLATE_SUFFIX = ".bicep"


def power_state_from_statuses(statuses: Optional[Iterable[Any]]) -> str:
    """
    Derive a VM power state from its instance view statuses.

    Args:
        statuses: Status entries carrying ``code`` and ``display_status``

    Returns:
        Display text of the first ``PowerState/*`` entry, or ``Unknown``
    """
    for status in statuses or []:
        code = getattr(status, "code", None)
        if code and code.startswith(POWER_STATE_PREFIX):
            return getattr(status, "display_status", None) or UNKNOWN
    return UNKNOWN


def is_running(power_state: Optional[str]) -> bool:
    """Check whether a power state describes a running VM."""
    return RUNNING_MARKER in (power_state or "").lower()


def is_route_server(hub_name: Optional[str]) -> bool:
    """Route servers are recognised by naming convention only."""
    return ROUTE_SERVER_MARKER in (hub_name or "").lower()


def vm_type_from_tags(tags: Optional[Dict[str, str]]) -> str:
    """Read the lab's VM role from the VmType tag."""
    return (tags or {}).get(VM_TYPE_TAG, UNKNOWN)


def is_declarative_parameters(path: Optional[str]) -> bool:
    """Check whether a parameters file uses the .bicepparam dialect."""
    return bool(path) and str(path).lower().endswith(DECLARATIVE_PARAMETERS_SUFFIX)


def is_declarative_template(path: Optional[str]) -> bool:
    """Check whether a template is Bicep source rather than ARM JSON."""
    return bool(path) and Path(path).suffix.lower() == DECLARATIVE_TEMPLATE_SUFFIX
