"""
Status reporting for the VWAN lab environment.

The status command reads the resource group once and reports four views of
it: a census by resource type, the WAN and hubs, the VMs, and the network
resources. Each view is built independently so that a failure in one is
reported in place and the others still run.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .classify import UNKNOWN, power_state_from_statuses
from .models import (
    PublicIpRecord,
    SecurityGroupRecord,
    VirtualHubRecord,
    VirtualMachineRecord,
    VirtualNetworkRecord,
    VirtualWanRecord,
)
from .report import Fault, Report, ReportSection, attempt

logger = logging.getLogger(__name__)

UNASSIGNED_IP = "Not assigned"


@dataclass
class VmStatus:
    record: VirtualMachineRecord
    power_state: str = UNKNOWN
    fault: Optional[Fault] = None


class StatusReport(Report):
    """Outcome of a status command."""

    def __init__(self, log: logging.Logger):
        super().__init__(log)
        self.census: Dict[str, int] = {}
        self.wans: List[VirtualWanRecord] = []
        self.hubs: List[VirtualHubRecord] = []
        self.vms: List[VmStatus] = []
        self.vnets: List[VirtualNetworkRecord] = []
        self.public_ips: List[PublicIpRecord] = []
        self.nsgs: List[SecurityGroupRecord] = []

    @property
    def total_resources(self) -> int:
        return sum(self.census.values())


def describe_wan(section: ReportSection, wan: VirtualWanRecord, full: bool = True) -> None:
    """Write the identity and configuration lines for a virtual WAN."""
    section.add(f"Virtual WAN: {wan.name}")
    if full:
        section.add(f"Location: {wan.location}", indent=1)
    section.add(f"Type: {wan.wan_type}", indent=1)
    section.add(f"Allow Branch to Branch: {wan.allow_branch_to_branch}", indent=1)
    if full:
        section.add(f"Provisioning State: {wan.provisioning_state}", indent=1)


def describe_hub(section: ReportSection, hub: VirtualHubRecord, full: bool = True) -> None:
    """Write the identity and configuration lines for a virtual hub."""
    section.add(f"Virtual Hub: {hub.name}")
    if full:
        section.add(f"Location: {hub.location}", indent=1)
    section.add(f"Address Prefix: {hub.address_prefix}", indent=1)
    if full:
        section.add(f"Provisioning State: {hub.provisioning_state}", indent=1)
    # Router fields are omitted, not blanked, when the hub has none.
    if hub.router_asn is not None:
        section.add(f"Virtual Router ASN: {hub.router_asn}", indent=1)
    if hub.router_ips:
        section.add(f"Virtual Router IPs: {', '.join(hub.router_ips)}", indent=1)


class LabMonitor:
    """Builds the status report for a lab resource group."""

    def __init__(self, provider):
        self.provider = provider

    async def get_status(self, subscription_id: str, resource_group_name: str) -> StatusReport:
        """
        Get comprehensive status of the lab environment.

        Args:
            subscription_id: Target subscription
            resource_group_name: Lab resource group

        Returns:
            StatusReport; sections that failed are marked degraded

        Raises:
            ResourceGroupNotFoundError: If the group does not exist
        """
        report = StatusReport(logger)
        intro = report.section("VWAN Lab Status", header=False)
        intro.add("Getting VWAN lab status...")
        intro.add(f"Subscription: {subscription_id}")
        intro.add(f"Resource Group: {resource_group_name}")

        group = (await self.provider.get_resource_group(resource_group_name)).name

        await report.isolated("Resource Summary", lambda s: self._resource_summary(group, report, s))
        await report.isolated("Virtual WAN Status", lambda s: self._wan_status(group, report, s))
        await report.isolated("Virtual Machine Status", lambda s: self._vm_status(group, report, s))
        await report.isolated("Networking Status", lambda s: self._network_status(group, report, s))

        logger.info("Status check completed")
        return report

    async def _resource_summary(self, group: str, report: StatusReport, section: ReportSection) -> None:
        counts: Dict[str, int] = {}
        async for resource in self.provider.list_resources(group):
            counts[resource.resource_type] = counts.get(resource.resource_type, 0) + 1

        report.census = dict(sorted(counts.items()))
        for resource_type, count in report.census.items():
            section.add(f"{resource_type}: {count}")

    async def _wan_status(self, group: str, report: StatusReport, section: ReportSection) -> None:
        async for wan in self.provider.list_virtual_wans(group):
            report.wans.append(wan)
            describe_wan(section, wan)

        async for hub in self.provider.list_virtual_hubs(group):
            report.hubs.append(hub)
            describe_hub(section, hub)

    async def _vm_status(self, group: str, report: StatusReport, section: ReportSection) -> None:
        async for vm in self.provider.list_virtual_machines(group):
            section.add(f"VM: {vm.name}")
            section.add(f"Location: {vm.location}", indent=1)
            section.add(f"Size: {vm.vm_size}", indent=1)
            section.add(f"OS: {vm.os_type}", indent=1)
            section.add(f"Provisioning State: {vm.provisioning_state}", indent=1)

            outcome = await attempt(
                vm.name, lambda name=vm.name: self.provider.get_instance_statuses(group, name)
            )
            status = VmStatus(record=vm, fault=outcome.fault)
            if outcome.ok:
                status.power_state = power_state_from_statuses(outcome.value)
            else:
                section.degrade(outcome.fault, f"Error getting power state: {outcome.fault.message}", indent=1)
            section.add(f"Power State: {status.power_state}", indent=1)
            report.vms.append(status)

    async def _network_status(self, group: str, report: StatusReport, section: ReportSection) -> None:
        async for vnet in self.provider.list_virtual_networks(group):
            report.vnets.append(vnet)
            section.add(f"VNet: {vnet.name}")
            section.add(f"Location: {vnet.location}", indent=1)
            if vnet.address_prefixes:
                section.add(f"Address Space: {', '.join(vnet.address_prefixes)}", indent=1)
            section.add(f"Provisioning State: {vnet.provisioning_state}", indent=1)
            for subnet in vnet.subnets:
                section.add(f"Subnet: {subnet.name} - {subnet.address_prefix}", indent=2)

        async for address in self.provider.list_public_ips(group):
            report.public_ips.append(address)
            section.add(f"Public IP: {address.name}")
            section.add(f"IP Address: {address.ip_address or UNASSIGNED_IP}", indent=1)
            section.add(f"Allocation: {address.allocation_method}", indent=1)
            section.add(f"Provisioning State: {address.provisioning_state}", indent=1)

        async for nsg in self.provider.list_security_groups(group):
            report.nsgs.append(nsg)
            section.add(f"NSG: {nsg.name}")
            section.add(f"Security Rules: {nsg.rule_count}", indent=1)
            section.add(f"Provisioning State: {nsg.provisioning_state}", indent=1)
