"""
Deployment of the VWAN lab template into a resource group.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .classify import is_declarative_parameters, is_declarative_template
from .errors import DeploymentFailedError, ResourceGroupNotFoundError, TemplateFormatError, TemplateNotFoundError
from .ids import new_deployment_name
from .models import DeploymentRequest, DeploymentState, ResourceGroupHandle
from .operations import WaitUntil
from .report import Report, ReportSection
from .tags import is_lab_resource, provenance_tags

logger = logging.getLogger(__name__)

BICEP_GUIDANCE = "Please use Azure CLI or PowerShell for Bicep deployment."


class DeploymentReport(Report):
    """Outcome of a deploy command."""

    def __init__(self, log: logging.Logger):
        super().__init__(log)
        self.resource_group: Optional[ResourceGroupHandle] = None
        self.deployment_name: Optional[str] = None
        self.state: Optional[str] = None
        self.outputs: Dict[str, Any] = {}
        self.error: Optional[str] = None
        self.skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    @property
    def succeeded(self) -> bool:
        return self.state == DeploymentState.SUCCEEDED.value


def _output_value(output: Any) -> Any:
    """Deployment outputs arrive as {"type": ..., "value": ...} entries."""
    if isinstance(output, dict) and "value" in output:
        return output["value"]
    return output


def _load_json(path: Path, what: str) -> Any:
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise TemplateFormatError(f"Invalid {what} {path}: {e}")


class LabDeployer:
    """Submits the lab template and follows the deployment to a terminal state."""

    def __init__(self, provider):
        self.provider = provider

    async def deploy(
        self,
        subscription_id: str,
        resource_group_name: str,
        location: str,
        template_file: str,
        parameters_file: Optional[str] = None,
    ) -> DeploymentReport:
        """
        Deploy the lab environment.

        Args:
            subscription_id: Target subscription
            resource_group_name: Resource group to deploy into, created if absent
            location: Region used when the group has to be created
            template_file: ARM JSON template path
            parameters_file: Optional ARM parameters document path

        Returns:
            DeploymentReport with the terminal state and outputs, or the
            reason the deployment was skipped

        Raises:
            TemplateNotFoundError: If the template file does not exist
            TemplateFormatError: If the template or parameters cannot be parsed
            DeploymentFailedError: If the deployment ends in any state but Succeeded
        """
        report = DeploymentReport(logger)
        section = report.section("VWAN Lab Deployment")
        section.add("Starting VWAN lab deployment...")
        section.add(f"Subscription: {subscription_id}")
        section.add(f"Resource Group: {resource_group_name}")
        section.add(f"Location: {location}")

        # Everything below up to the first provider call is local validation.
        template_path = Path(template_file)
        if not template_path.is_file():
            raise TemplateNotFoundError(template_file)

        if is_declarative_template(template_file):
            report.skipped_reason = f"Bicep template detected. {BICEP_GUIDANCE}"
            section.add(report.skipped_reason)
            return report

        parameters = None
        if parameters_file:
            if is_declarative_parameters(parameters_file):
                report.skipped_reason = f"Bicep parameters file detected. {BICEP_GUIDANCE}"
                section.add(report.skipped_reason)
                return report
            parameters = self._load_parameters(parameters_file, section)

        template = _load_json(template_path, "template file")
        if not isinstance(template, dict):
            raise TemplateFormatError(f"Invalid template file {template_file}: expected a JSON object")
        section.add(f"Template file loaded: {template_file}")

        subscription_name = await self.provider.get_subscription_name()
        section.add(f"Connected to subscription: {subscription_name}")

        report.resource_group = await self.ensure_resource_group(resource_group_name, location, section)

        request = DeploymentRequest(
            name=new_deployment_name(),
            template=template,
            parameters=parameters,
        )
        report.deployment_name = request.name
        section.add(f"Starting deployment: {request.name}")

        operation = await self.provider.begin_deployment(resource_group_name, request)
        status = await operation.wait(WaitUntil.COMPLETED)
        report.state = status.state

        if status.state != DeploymentState.SUCCEEDED.value:
            report.error = status.error
            section.error(f"Deployment failed with state: {status.state}")
            if status.error:
                section.error(f"Error: {status.error}")
            raise DeploymentFailedError(request.name, status.state, status.error)

        section.add("Deployment completed successfully!")
        report.outputs = {key: _output_value(value) for key, value in status.outputs.items()}
        if report.outputs:
            section.add("Deployment outputs:")
            for key, value in report.outputs.items():
                section.add(f"{key}: {value}", indent=1)

        return report

    def _load_parameters(self, parameters_file: str, section: ReportSection) -> Optional[Dict[str, Any]]:
        path = Path(parameters_file)
        if not path.is_file():
            section.warn(f"Parameters file not found: {parameters_file}; deploying without parameters")
            return None

        document = _load_json(path, "parameters file")
        if not isinstance(document, dict) or "parameters" not in document:
            raise TemplateFormatError(f"Parameters file {parameters_file} has no 'parameters' property")

        section.add(f"Parameters file loaded: {parameters_file}")
        return document["parameters"]

    async def ensure_resource_group(
        self,
        name: str,
        location: str,
        section: Optional[ReportSection] = None,
    ) -> ResourceGroupHandle:
        """
        Fetch the resource group, creating it with provenance tags if absent.

        A group that appears between the lookup and the create (a concurrent
        run) is accepted as-is.
        """
        note = section.add if section else logger.info
        try:
            group = await self.provider.get_resource_group(name)
            note(f"Using existing resource group: {name}")
            if not is_lab_resource(group.tags):
                logger.debug(f"Resource group {name} was not created by this tool")
            return group
        except ResourceGroupNotFoundError:
            pass

        note(f"Creating new resource group: {name}")
        try:
            return await self.provider.create_resource_group(name, location, provenance_tags())
        except Exception as create_error:
            try:
                group = await self.provider.get_resource_group(name)
            except ResourceGroupNotFoundError:
                raise create_error
            note(f"Resource group {name} was created concurrently; using it")
            return group
