"""
Click CLI interface for VWAN lab automation.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

import click

from .cleaner import LabCleaner
from .config import LabSettings, load_settings
from .deployer import LabDeployer
from .monitor import LabMonitor
from .provider import AzureResourceProvider
from .tester import LabTester

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

# Replaced in tests with a factory for an in-memory provider.
provider_factory = AzureResourceProvider


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        click.echo(f"Invalid log level: {level_name}", err=True)
        sys.exit(1)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _run(ctx: click.Context, label: str, subscription: str, work: Callable[..., Awaitable]) -> Optional[object]:
    """Run one orchestrator against a fresh provider and map failures to exit codes."""
    settings: LabSettings = ctx.obj["settings"]

    async def runner():
        async with provider_factory(subscription, settings) as provider:
            return await work(provider)

    try:
        return asyncio.run(runner())
    except KeyboardInterrupt:
        click.echo(f"\n{label} cancelled by user", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"{label} failed: {e}", err=True)
        sys.exit(1)


def lab_options(func):
    """Options every command needs to locate the lab."""
    func = click.option("--resource-group", "resource_group", required=True, help="Resource group name")(func)
    func = click.option("--subscription", required=True, help="Azure subscription ID")(func)
    return func


@click.group()
@click.option("--settings", "settings_path", type=click.Path(dir_okay=False), help="Settings JSON file (default: ./appsettings.json)")
@click.option("--log-level", help="Logging level (default: INFO)")
@click.pass_context
def main(ctx, settings_path, log_level):
    """
    Azure Virtual WAN Lab Automation Tool.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings(Path(settings_path) if settings_path else None)
    except (OSError, ValueError) as e:
        click.echo(f"Invalid settings: {e}", err=True)
        sys.exit(1)

    settings = settings.with_overrides(log_level=log_level)
    _configure_logging(settings.log_level)
    ctx.obj["settings"] = settings


@main.command()
@lab_options
@click.option("--location", help="Azure region for deployment")
@click.option("--template-file", help="Path to the ARM template file")
@click.option("--parameters-file", help="Path to the parameters file")
@click.pass_context
def deploy(ctx, subscription, resource_group, location, template_file, parameters_file):
    """
    Deploy the VWAN lab environment.
    """
    settings = ctx.obj["settings"].with_overrides(
        location=location, template_file=template_file, parameters_file=parameters_file
    )
    _run(ctx, "Deployment", subscription, lambda provider: LabDeployer(provider).deploy(
        subscription,
        resource_group,
        settings.location,
        settings.template_file,
        settings.parameters_file,
    ))


@main.command()
@lab_options
@click.option("--detailed", is_flag=True, help="Show detailed test results")
@click.pass_context
def test(ctx, subscription, resource_group, detailed):
    """
    Test connectivity in the VWAN lab environment.
    """
    _run(ctx, "Connectivity testing", subscription, lambda provider: LabTester(provider).test_connectivity(
        subscription, resource_group, detailed
    ))


@main.command()
@lab_options
@click.pass_context
def status(ctx, subscription, resource_group):
    """
    Get status of the VWAN lab environment.
    """
    _run(ctx, "Status check", subscription, lambda provider: LabMonitor(provider).get_status(
        subscription, resource_group
    ))


@main.command()
@lab_options
@click.option("--force", is_flag=True, help="Force cleanup without confirmation")
@click.pass_context
def cleanup(ctx, subscription, resource_group, force):
    """
    Clean up the VWAN lab environment.
    """
    _run(ctx, "Cleanup", subscription, lambda provider: LabCleaner(provider).cleanup(
        subscription, resource_group, force
    ))


if __name__ == "__main__":
    main()
