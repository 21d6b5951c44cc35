"""
Teardown of the VWAN lab environment.
"""

import logging
from typing import Callable, List, Optional

import click

from .operations import WaitUntil
from .report import Report

logger = logging.getLogger(__name__)

AFFIRMATIVE = "yes"
CONFIRMATION_PROMPT = f"Are you sure you want to delete all resources? ({AFFIRMATIVE}/no)"


def prompt_confirmation(message: str) -> str:
    """Ask on the terminal; an empty answer is allowed and cancels."""
    return click.prompt(message, default="", show_default=False)


class CleanupReport(Report):
    """Outcome of a cleanup command."""

    def __init__(self, log: logging.Logger):
        super().__init__(log)
        self.resources: List[str] = []
        self.cancelled = False
        self.deletion_issued = False
        self.waited = False
        self.final_state: Optional[str] = None


class LabCleaner:
    """Deletes the lab resource group after confirmation."""

    def __init__(self, provider, confirm: Callable[[str], str] = prompt_confirmation):
        self.provider = provider
        self.confirm = confirm

    async def cleanup(self, subscription_id: str, resource_group_name: str, force: bool = False) -> CleanupReport:
        """
        Clean up the lab environment.

        Deletion is a single resource group delete; the provider cascades it
        to every contained resource.

        Args:
            subscription_id: Target subscription
            resource_group_name: Lab resource group
            force: Skip the confirmation prompt and wait for deletion to finish

        Returns:
            CleanupReport describing what was listed and whether deletion ran

        Raises:
            ResourceGroupNotFoundError: If the group does not exist
        """
        report = CleanupReport(logger)
        section = report.section("VWAN Lab Cleanup", header=False)
        section.add("Starting VWAN lab cleanup...")
        section.add(f"Subscription: {subscription_id}")
        section.add(f"Resource Group: {resource_group_name}")

        group = (await self.provider.get_resource_group(resource_group_name)).name

        report.resources = [
            f"{resource.resource_type}: {resource.name}"
            async for resource in self.provider.list_resources(group)
        ]
        if not report.resources:
            section.add("No resources found in resource group")
            return report

        section.warn(f"The following {len(report.resources)} resources will be deleted:")
        for resource in report.resources:
            section.warn(f"- {resource}", indent=1)

        if not force:
            section.warn("This action cannot be undone!")
            answer = self.confirm(CONFIRMATION_PROMPT)
            if (answer or "").lower() != AFFIRMATIVE:
                report.cancelled = True
                section.add("Cleanup cancelled by user")
                return report

        section.add("Deleting resource group and all resources...")
        operation = await self.provider.begin_delete_resource_group(group)
        report.deletion_issued = True
        report.final_state = (await operation.wait(WaitUntil.STARTED)).state
        section.add("Cleanup initiated. Resource group deletion is in progress...")

        if force:
            section.add("Waiting for cleanup to complete...")
            report.final_state = (await operation.wait(WaitUntil.COMPLETED)).state
            report.waited = True
            section.add("Cleanup completed successfully")
        else:
            section.add("You can monitor the progress in the Azure Portal")

        return report
