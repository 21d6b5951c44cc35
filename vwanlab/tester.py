"""
Connectivity testing for the VWAN lab environment.

The control plane cannot send traffic, so connectivity is inferred from
declarative state: VM power state and private addresses, and in detailed
mode the hub VNet connections, route server BGP sessions and VNet peerings.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from .classify import UNKNOWN, is_route_server, is_running, power_state_from_statuses
from .models import BgpConnectionRecord, HubConnectionRecord, PeeringRecord, VirtualMachineRecord
from .monitor import describe_hub, describe_wan
from .report import Fault, Report, ReportSection, attempt

logger = logging.getLogger(__name__)

# Existence is all the hub connection read model tells us.
CONNECTION_AVAILABLE = "Status Available"


@dataclass
class VmConnectivity:
    """Connectivity facts derived for one VM."""
    name: str
    vm_type: str
    power_state: str = UNKNOWN
    private_ips: List[str] = field(default_factory=list)
    faults: List[Fault] = field(default_factory=list)

    @property
    def running(self) -> bool:
        return is_running(self.power_state)


class ConnectivityReport(Report):
    """Outcome of a test command."""

    def __init__(self, log: logging.Logger):
        super().__init__(log)
        self.vms: List[VmConnectivity] = []
        self.hub_connections: Dict[str, List[HubConnectionRecord]] = {}
        self.bgp_connections: Dict[str, List[BgpConnectionRecord]] = {}
        self.peerings: Dict[str, List[PeeringRecord]] = {}
        self.detailed = False


class LabTester:
    """Derives connectivity posture for the VMs and network of a lab."""

    def __init__(self, provider):
        self.provider = provider

    async def test_connectivity(
        self, subscription_id: str, resource_group_name: str, detailed: bool = False
    ) -> ConnectivityReport:
        """
        Test connectivity in the lab environment.

        Args:
            subscription_id: Target subscription
            resource_group_name: Lab resource group
            detailed: Also check hubs, route servers and VNet peerings

        Returns:
            ConnectivityReport; an empty VM list is a warning, not an error

        Raises:
            ResourceGroupNotFoundError: If the group does not exist
        """
        report = ConnectivityReport(logger)
        report.detailed = detailed
        intro = report.section("Connectivity Tests", header=False)
        intro.add("Starting connectivity tests...")
        intro.add(f"Subscription: {subscription_id}")
        intro.add(f"Resource Group: {resource_group_name}")

        group = (await self.provider.get_resource_group(resource_group_name)).name

        vms = [vm async for vm in self.provider.list_virtual_machines(group)]
        if not vms:
            intro.warn("No VMs found in resource group")
            return report

        inventory = report.section("Lab VMs")
        inventory.add(f"Found {len(vms)} VMs")
        for vm in vms:
            inventory.add(f"- {vm.name} ({vm.vm_type})", indent=1)

        basic = report.section("VM Connectivity")
        basic.add("Testing basic VM connectivity...")
        for vm in vms:
            report.vms.append(await self._test_vm(group, vm, basic))

        if detailed:
            logger.info("Running detailed connectivity tests...")
            await report.isolated("VWAN hub status", lambda s: self._hub_status(group, report, s))
            await report.isolated("Route Server status", lambda s: self._route_server_status(group, report, s))
            await report.isolated("VNet peering status", lambda s: self._peering_status(group, report, s))

        logger.info("Connectivity tests completed")
        return report

    async def _test_vm(self, group: str, vm: VirtualMachineRecord, section: ReportSection) -> VmConnectivity:
        result = VmConnectivity(name=vm.name, vm_type=vm.vm_type)

        outcome = await attempt(vm.name, lambda: self.provider.get_instance_statuses(group, vm.name))
        if not outcome.ok:
            result.faults.append(outcome.fault)
            section.degrade(outcome.fault, f"Error getting VM info for {vm.name}: {outcome.fault.message}")
            return result

        result.power_state = power_state_from_statuses(outcome.value)
        section.add(f"VM {vm.name}: {result.power_state}")

        if not result.running:
            return result

        for nic_id in vm.nic_ids:
            nic = await attempt(nic_id, lambda nic_id=nic_id: self.provider.get_network_interface(nic_id))
            if not nic.ok:
                result.faults.append(nic.fault)
                section.degrade(nic.fault, f"Error getting network interface {nic_id}: {nic.fault.message}", indent=1)
                continue
            if nic.value.private_ip:
                result.private_ips.append(nic.value.private_ip)
                section.add(f"Private IP: {nic.value.private_ip}", indent=1)

        return result

    async def _hub_status(self, group: str, report: ConnectivityReport, section: ReportSection) -> None:
        section.add("Checking VWAN hub status...")
        async for wan in self.provider.list_virtual_wans(group):
            describe_wan(section, wan, full=False)

        async for hub in self.provider.list_virtual_hubs(group):
            describe_hub(section, hub, full=False)
            connections = report.hub_connections.setdefault(hub.name, [])
            async for connection in self.provider.list_hub_connections(group, hub.name):
                connections.append(connection)
                section.add(f"VNet Connection: {connection.name} - {CONNECTION_AVAILABLE}", indent=1)

    async def _route_server_status(self, group: str, report: ConnectivityReport, section: ReportSection) -> None:
        section.add("Checking Route Server status...")
        async for hub in self.provider.list_virtual_hubs(group):
            if not is_route_server(hub.name):
                continue

            section.add(f"Route Server: {hub.name}")
            section.add(f"Allow Branch to Branch: {hub.allow_branch_to_branch}", indent=1)
            sessions = report.bgp_connections.setdefault(hub.name, [])
            async for bgp in self.provider.list_bgp_connections(group, hub.name):
                sessions.append(bgp)
                section.add(f"BGP Connection: {bgp.name}", indent=1)
                section.add(f"Peer ASN: {bgp.peer_asn}", indent=2)
                section.add(f"Peer IP: {bgp.peer_ip}", indent=2)
                section.add(f"Connection State: {bgp.connection_state}", indent=2)

    async def _peering_status(self, group: str, report: ConnectivityReport, section: ReportSection) -> None:
        section.add("Checking VNet peering status...")
        async for vnet in self.provider.list_virtual_networks(group):
            section.add(f"Virtual Network: {vnet.name}")
            if vnet.address_prefixes:
                section.add(f"Address Space: {', '.join(vnet.address_prefixes)}", indent=1)

            peerings = report.peerings.setdefault(vnet.name, [])
            async for peering in self.provider.list_peerings(group, vnet.name):
                peerings.append(peering)
                section.add(f"Peering: {peering.name} - {peering.peering_state}", indent=1)
