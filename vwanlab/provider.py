"""
Resource Provider Client backed by the Azure management SDK.

All provider access for the lab goes through AzureResourceProvider. It hands
out plain records from vwanlab.models so the orchestrators never depend on
SDK model types, and exposes enumerations as async iterators that follow the
provider's pagination lazily.
"""

import logging
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.mgmt.compute.aio import ComputeManagementClient
from azure.mgmt.core.tools import parse_resource_id
from azure.mgmt.network.aio import NetworkManagementClient
from azure.mgmt.resource.resources.aio import ResourceManagementClient
from azure.mgmt.resource.resources.models import (
    Deployment,
    DeploymentMode as ArmDeploymentMode,
    DeploymentProperties,
    ResourceGroup,
)
from azure.mgmt.resource.subscriptions.aio import SubscriptionClient

from .config import LabSettings
from .errors import ResourceGroupNotFoundError
from .models import (
    DELETED_STATE,
    DELETION_TERMINAL_STATES,
    DEPLOYMENT_TERMINAL_STATES,
    BgpConnectionRecord,
    DeploymentRequest,
    GenericResourceRecord,
    HubConnectionRecord,
    InstanceStatus,
    NetworkInterfaceRecord,
    PeeringRecord,
    PublicIpRecord,
    ResourceGroupHandle,
    SecurityGroupRecord,
    SubnetRecord,
    VirtualHubRecord,
    VirtualMachineRecord,
    VirtualNetworkRecord,
    VirtualWanRecord,
)
from .operations import OperationHandle, OperationStatus

logger = logging.getLogger(__name__)


def _text(value: Any) -> Optional[str]:
    """Render SDK enum members and plain strings the same way."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _to_group(subscription_id: str, group: Any) -> ResourceGroupHandle:
    properties = getattr(group, "properties", None)
    return ResourceGroupHandle(
        subscription_id=subscription_id,
        name=group.name,
        location=group.location,
        tags=dict(group.tags or {}),
        provisioning_state=_text(getattr(properties, "provisioning_state", None)),
    )


def _to_wan(wan: Any) -> VirtualWanRecord:
    return VirtualWanRecord(
        name=wan.name,
        location=wan.location,
        wan_type=_text(getattr(wan, "type_properties_type", None)),
        allow_branch_to_branch=wan.allow_branch_to_branch_traffic,
        provisioning_state=_text(wan.provisioning_state),
    )


def _to_hub(hub: Any) -> VirtualHubRecord:
    return VirtualHubRecord(
        name=hub.name,
        location=hub.location,
        address_prefix=hub.address_prefix,
        provisioning_state=_text(hub.provisioning_state),
        router_asn=hub.virtual_router_asn,
        router_ips=list(hub.virtual_router_ips or []),
        allow_branch_to_branch=getattr(hub, "allow_branch_to_branch_traffic", None),
    )


def _to_vnet(vnet: Any) -> VirtualNetworkRecord:
    address_space = getattr(vnet, "address_space", None)
    return VirtualNetworkRecord(
        name=vnet.name,
        location=vnet.location,
        address_prefixes=list(getattr(address_space, "address_prefixes", None) or []),
        subnets=[
            SubnetRecord(name=subnet.name, address_prefix=subnet.address_prefix)
            for subnet in vnet.subnets or []
        ],
        provisioning_state=_text(vnet.provisioning_state),
    )


def _to_vm(vm: Any) -> VirtualMachineRecord:
    hardware = getattr(vm, "hardware_profile", None)
    storage = getattr(vm, "storage_profile", None)
    os_disk = getattr(storage, "os_disk", None)
    network = getattr(vm, "network_profile", None)
    return VirtualMachineRecord(
        name=vm.name,
        location=vm.location,
        vm_size=_text(getattr(hardware, "vm_size", None)),
        os_type=_text(getattr(os_disk, "os_type", None)),
        provisioning_state=_text(vm.provisioning_state),
        tags=dict(vm.tags or {}),
        nic_ids=[nic.id for nic in getattr(network, "network_interfaces", None) or [] if nic.id],
    )


def _to_nic(nic: Any) -> NetworkInterfaceRecord:
    configs = nic.ip_configurations or []
    return NetworkInterfaceRecord(
        id=nic.id,
        name=nic.name,
        private_ip=configs[0].private_ip_address if configs else None,
    )


def _to_deployment_status(deployment: Any) -> OperationStatus:
    properties = deployment.properties
    error = getattr(properties, "error", None)
    return OperationStatus(
        state=_text(properties.provisioning_state) or "Unknown",
        outputs=dict(properties.outputs or {}),
        error=getattr(error, "message", None) if error else None,
    )


class AzureResourceProvider:
    """Authenticated access to the Azure control plane for one subscription."""

    def __init__(self, subscription_id: str, settings: Optional[LabSettings] = None, credential: Any = None):
        self.subscription_id = subscription_id
        self.settings = settings or LabSettings()
        self._credential = credential
        self._owns_credential = credential is None
        self._resource_client: Optional[ResourceManagementClient] = None
        self._network_client: Optional[NetworkManagementClient] = None
        self._compute_client: Optional[ComputeManagementClient] = None
        self._subscription_client: Optional[SubscriptionClient] = None

    async def __aenter__(self) -> "AzureResourceProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close every client created so far, then the credential."""
        for client in (
            self._resource_client,
            self._network_client,
            self._compute_client,
            self._subscription_client,
        ):
            if client is not None:
                await client.close()
        if self._credential is not None and self._owns_credential:
            await self._credential.close()

    def _get_credential(self) -> Any:
        if self._credential is None:
            self._credential = DefaultAzureCredential()
        return self._credential

    def _get_resource_client(self) -> ResourceManagementClient:
        if not self._resource_client:
            self._resource_client = ResourceManagementClient(
                credential=self._get_credential(), subscription_id=self.subscription_id
            )
        return self._resource_client

    def _get_network_client(self) -> NetworkManagementClient:
        if not self._network_client:
            self._network_client = NetworkManagementClient(
                credential=self._get_credential(), subscription_id=self.subscription_id
            )
        return self._network_client

    def _get_compute_client(self) -> ComputeManagementClient:
        if not self._compute_client:
            self._compute_client = ComputeManagementClient(
                credential=self._get_credential(), subscription_id=self.subscription_id
            )
        return self._compute_client

    def _get_subscription_client(self) -> SubscriptionClient:
        if not self._subscription_client:
            self._subscription_client = SubscriptionClient(credential=self._get_credential())
        return self._subscription_client

    def _handle(self, name: str, probe, terminal_states, initial: OperationStatus) -> OperationHandle:
        return OperationHandle(
            name=name,
            probe=probe,
            terminal_states=terminal_states,
            initial=initial,
            poll_interval=self.settings.poll_interval,
            timeout=self.settings.operation_timeout or None,
        )

    # Subscription and resource groups

    async def get_subscription_name(self) -> str:
        subscription = await self._get_subscription_client().subscriptions.get(self.subscription_id)
        return subscription.display_name or self.subscription_id

    async def get_resource_group(self, name: str) -> ResourceGroupHandle:
        try:
            group = await self._get_resource_client().resource_groups.get(name)
        except ResourceNotFoundError:
            raise ResourceGroupNotFoundError(name)
        return _to_group(self.subscription_id, group)

    async def create_resource_group(self, name: str, location: str, tags: Dict[str, str]) -> ResourceGroupHandle:
        # PUT on an existing group returns that group unchanged in identity.
        group = await self._get_resource_client().resource_groups.create_or_update(
            name, ResourceGroup(location=location, tags=tags)
        )
        return _to_group(self.subscription_id, group)

    async def list_resources(self, group: str) -> AsyncIterator[GenericResourceRecord]:
        async for resource in self._get_resource_client().resources.list_by_resource_group(group):
            yield GenericResourceRecord(resource_type=resource.type, name=resource.name)

    # Virtual WAN

    async def list_virtual_wans(self, group: str) -> AsyncIterator[VirtualWanRecord]:
        async for wan in self._get_network_client().virtual_wans.list_by_resource_group(group):
            yield _to_wan(wan)

    async def list_virtual_hubs(self, group: str) -> AsyncIterator[VirtualHubRecord]:
        async for hub in self._get_network_client().virtual_hubs.list_by_resource_group(group):
            yield _to_hub(hub)

    async def list_hub_connections(self, group: str, hub: str) -> AsyncIterator[HubConnectionRecord]:
        async for connection in self._get_network_client().hub_virtual_network_connections.list(group, hub):
            remote = getattr(connection, "remote_virtual_network", None)
            yield HubConnectionRecord(
                name=connection.name,
                provisioning_state=_text(connection.provisioning_state),
                remote_vnet_id=getattr(remote, "id", None),
            )

    async def list_bgp_connections(self, group: str, hub: str) -> AsyncIterator[BgpConnectionRecord]:
        async for connection in self._get_network_client().virtual_hub_bgp_connections.list(group, hub):
            yield BgpConnectionRecord(
                name=connection.name,
                peer_asn=connection.peer_asn,
                peer_ip=connection.peer_ip,
                connection_state=_text(connection.connection_state),
            )

    # Virtual networks

    async def list_virtual_networks(self, group: str) -> AsyncIterator[VirtualNetworkRecord]:
        async for vnet in self._get_network_client().virtual_networks.list(group):
            yield _to_vnet(vnet)

    async def list_peerings(self, group: str, vnet: str) -> AsyncIterator[PeeringRecord]:
        async for peering in self._get_network_client().virtual_network_peerings.list(group, vnet):
            yield PeeringRecord(
                name=peering.name,
                peering_state=_text(peering.peering_state),
                provisioning_state=_text(peering.provisioning_state),
            )

    async def list_public_ips(self, group: str) -> AsyncIterator[PublicIpRecord]:
        async for address in self._get_network_client().public_ip_addresses.list(group):
            yield PublicIpRecord(
                name=address.name,
                ip_address=address.ip_address,
                allocation_method=_text(address.public_ip_allocation_method),
                provisioning_state=_text(address.provisioning_state),
            )

    async def list_security_groups(self, group: str) -> AsyncIterator[SecurityGroupRecord]:
        async for nsg in self._get_network_client().network_security_groups.list(group):
            yield SecurityGroupRecord(
                name=nsg.name,
                rule_count=len(nsg.security_rules or []),
                provisioning_state=_text(nsg.provisioning_state),
            )

    # Compute

    async def list_virtual_machines(self, group: str) -> AsyncIterator[VirtualMachineRecord]:
        async for vm in self._get_compute_client().virtual_machines.list(group):
            yield _to_vm(vm)

    async def get_instance_statuses(self, group: str, vm: str) -> List[InstanceStatus]:
        view = await self._get_compute_client().virtual_machines.instance_view(group, vm)
        return [
            InstanceStatus(code=status.code, display_status=status.display_status)
            for status in view.statuses or []
        ]

    async def get_network_interface(self, nic_id: str) -> NetworkInterfaceRecord:
        parts = parse_resource_id(nic_id)
        nic = await self._get_network_client().network_interfaces.get(parts["resource_group"], parts["name"])
        return _to_nic(nic)

    # Long-running operations

    async def _deployment_status(self, group: str, name: str) -> OperationStatus:
        deployment = await self._get_resource_client().deployments.get(group, name)
        return _to_deployment_status(deployment)

    async def begin_deployment(self, group: str, request: DeploymentRequest) -> OperationHandle:
        deployment = Deployment(
            properties=DeploymentProperties(
                mode=ArmDeploymentMode(request.mode.value),
                template=request.template,
                parameters=request.parameters,
            )
        )
        # Only the submission is awaited here; completion is observed by polling.
        await self._get_resource_client().deployments.begin_create_or_update(group, request.name, deployment)

        async def probe() -> OperationStatus:
            return await self._deployment_status(group, request.name)

        return self._handle(f"Deployment {request.name}", probe, DEPLOYMENT_TERMINAL_STATES, await probe())

    async def _group_deletion_status(self, group: str) -> OperationStatus:
        try:
            handle = await self.get_resource_group(group)
        except ResourceGroupNotFoundError:
            return OperationStatus(state=DELETED_STATE)
        return OperationStatus(state=handle.provisioning_state or "Unknown")

    async def begin_delete_resource_group(self, group: str) -> OperationHandle:
        await self._get_resource_client().resource_groups.begin_delete(group)

        async def probe() -> OperationStatus:
            return await self._group_deletion_status(group)

        return self._handle(f"Delete resource group {group}", probe, DELETION_TERMINAL_STATES, await probe())
