"""
Exception types raised by the lab orchestrators.
"""

from typing import Optional


class VwanLabError(Exception):
    """Base exception for lab automation failures."""
    pass


class TemplateNotFoundError(VwanLabError):
    """Raised when the deployment template path does not resolve to a file."""

    def __init__(self, path: str):
        super().__init__(f"Template file not found: {path}")
        self.path = path


class TemplateFormatError(VwanLabError):
    """Raised when a template or parameters document cannot be parsed."""
    pass


class DeploymentFailedError(VwanLabError):
    """Raised when a deployment reaches a terminal state other than Succeeded."""

    def __init__(self, deployment_name: str, state: str, message: Optional[str] = None):
        detail = f"Deployment {deployment_name} finished with state {state}"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail)
        self.deployment_name = deployment_name
        self.state = state
        self.message = message


class ResourceGroupNotFoundError(VwanLabError):
    """Raised when a resource group does not exist in the subscription."""

    def __init__(self, name: str):
        super().__init__(f"Resource group not found: {name}")
        self.name = name


class OperationTimeoutError(VwanLabError):
    """Raised when a long-running operation does not finish in time."""

    def __init__(self, operation: str, timeout: float, last_state: Optional[str] = None):
        super().__init__(
            f"{operation} did not finish within {timeout:.0f}s (last state: {last_state or 'unknown'})"
        )
        self.operation = operation
        self.timeout = timeout
        self.last_state = last_state
