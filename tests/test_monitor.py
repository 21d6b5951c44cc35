"""
Tests for lab status reporting.
"""

import pytest

from vwanlab.classify import UNKNOWN
from vwanlab.errors import ResourceGroupNotFoundError
from vwanlab.models import (
    GenericResourceRecord,
    InstanceStatus,
    PublicIpRecord,
    SecurityGroupRecord,
    SubnetRecord,
    VirtualHubRecord,
    VirtualMachineRecord,
    VirtualNetworkRecord,
    VirtualWanRecord,
)
from vwanlab.monitor import UNASSIGNED_IP, LabMonitor

from conftest import RESOURCE_GROUP, SUBSCRIPTION_ID, FakeProvider

RUNNING = [
    InstanceStatus(code="ProvisioningState/succeeded", display_status="Provisioning succeeded"),
    InstanceStatus(code="PowerState/running", display_status="VM running"),
]


@pytest.fixture
def lab(provider):
    provider.resources = [
        GenericResourceRecord("Microsoft.Network/virtualNetworks", "spoke1"),
        GenericResourceRecord("Microsoft.Compute/virtualMachines", "vm-nva"),
        GenericResourceRecord("Microsoft.Network/virtualNetworks", "spoke2"),
        GenericResourceRecord("Microsoft.Network/virtualHubs", "hub"),
        GenericResourceRecord("Microsoft.Compute/virtualMachines", "vm-test"),
    ]
    provider.wans = [VirtualWanRecord("vwan", "eastus", "Standard", True, "Succeeded")]
    provider.hubs = [
        VirtualHubRecord("hub", "eastus", "10.0.0.0/24", "Succeeded", router_asn=65515, router_ips=["10.0.0.4", "10.0.0.5"]),
        VirtualHubRecord("hub-new", "eastus", "10.1.0.0/24", "Updating"),
    ]
    provider.vms = [
        VirtualMachineRecord("vm-nva", "eastus", "Standard_B2s", "Linux", "Succeeded", {"VmType": "nva"}),
        VirtualMachineRecord("vm-test", "eastus", "Standard_B1s", "Windows", "Succeeded", {"VmType": "test"}),
    ]
    provider.statuses = {"vm-nva": RUNNING, "vm-test": RUNNING}
    provider.vnets = [
        VirtualNetworkRecord("spoke1", "eastus", ["10.10.0.0/16"], [SubnetRecord("default", "10.10.0.0/24")], "Succeeded"),
    ]
    provider.public_ips = [
        PublicIpRecord("pip-nva", "20.1.2.3", "Static", "Succeeded"),
        PublicIpRecord("pip-pending", None, "Dynamic", "Succeeded"),
    ]
    provider.nsgs = [SecurityGroupRecord("nsg-spoke", 3, "Succeeded")]
    return provider


class TestResourceSummary:
    """Test the census of resource types."""

    @pytest.mark.asyncio
    async def test_census_counts_and_ordering(self, lab):
        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        assert report.census == {
            "Microsoft.Compute/virtualMachines": 2,
            "Microsoft.Network/virtualHubs": 1,
            "Microsoft.Network/virtualNetworks": 2,
        }
        assert list(report.census) == sorted(report.census)
        assert report.total_resources == len(lab.resources)
        assert report.get("Resource Summary").texts()[0] == "Microsoft.Compute/virtualMachines: 2"

    @pytest.mark.asyncio
    async def test_empty_group(self):
        provider = FakeProvider()
        provider.add_group()

        report = await LabMonitor(provider).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        assert report.census == {}
        assert report.total_resources == 0
        assert not report.degraded

    @pytest.mark.asyncio
    async def test_missing_group(self):
        with pytest.raises(ResourceGroupNotFoundError):
            await LabMonitor(FakeProvider()).get_status(SUBSCRIPTION_ID, "rg-missing")


class TestWanStatus:
    """Test WAN and hub reporting."""

    @pytest.mark.asyncio
    async def test_router_fields_omitted_when_absent(self, lab):
        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        texts = report.get("Virtual WAN Status").texts()
        assert "Virtual Router ASN: 65515" in texts
        assert "Virtual Router IPs: 10.0.0.4, 10.0.0.5" in texts
        assert texts.count("Virtual Router ASN: 65515") == 1
        assert not any(text.startswith("Virtual Router") for text in texts[texts.index("Virtual Hub: hub-new"):])
        assert [hub.name for hub in report.hubs] == ["hub", "hub-new"]


class TestVmStatus:
    """Test per-VM power state reporting."""

    @pytest.mark.asyncio
    async def test_power_states(self, lab):
        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        assert [vm.power_state for vm in report.vms] == ["VM running", "VM running"]
        assert not report.degraded

    @pytest.mark.asyncio
    async def test_one_vm_failure_isolated(self, lab):
        lab.failures["get_instance_statuses:vm-nva"] = RuntimeError("throttled")

        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        nva, test_vm = report.vms
        assert nva.power_state == UNKNOWN
        assert nva.fault.message == "throttled"
        assert test_vm.power_state == "VM running"
        assert test_vm.fault is None
        section = report.get("Virtual Machine Status")
        assert "Error getting power state: throttled" in section.texts()
        assert section.degraded

    @pytest.mark.asyncio
    async def test_vm_without_power_state(self, lab):
        lab.statuses["vm-test"] = [InstanceStatus(code="ProvisioningState/creating", display_status="Creating")]

        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        assert report.vms[1].power_state == UNKNOWN
        assert report.vms[1].fault is None


class TestSectionIsolation:
    """A failing view does not prevent the others from being reported."""

    @pytest.mark.asyncio
    async def test_hub_listing_failure(self, lab):
        lab.failures["list_virtual_hubs"] = RuntimeError("service unavailable")

        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        wan_section = report.get("Virtual WAN Status")
        assert wan_section.degraded
        assert "Error checking Virtual WAN Status: service unavailable" in wan_section.texts()
        assert "Virtual WAN: vwan" in wan_section.texts()
        assert not report.get("Virtual Machine Status").degraded
        assert not report.get("Networking Status").degraded
        assert len(report.vms) == 2
        assert report.total_resources == 5

    @pytest.mark.asyncio
    async def test_census_failure(self, lab):
        lab.failures["list_resources"] = RuntimeError("boom")

        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        assert report.get("Resource Summary").degraded
        assert report.census == {}
        assert len(report.public_ips) == 2


class TestNetworkingStatus:
    """Test VNet, public IP and NSG reporting."""

    @pytest.mark.asyncio
    async def test_networking_lines(self, lab):
        report = await LabMonitor(lab).get_status(SUBSCRIPTION_ID, RESOURCE_GROUP)

        section = report.get("Networking Status")
        texts = section.texts()
        assert "Address Space: 10.10.0.0/16" in texts
        assert "Subnet: default - 10.10.0.0/24" in texts
        assert "IP Address: 20.1.2.3" in texts
        assert f"IP Address: {UNASSIGNED_IP}" in texts
        assert "Security Rules: 3" in texts
        subnet_line = section.lines[texts.index("Subnet: default - 10.10.0.0/24")]
        assert subnet_line.indent == 2
