"""
Read-model records for lab resources.

Every record is a value snapshot fetched from the provider for a single
command invocation; nothing here is persisted or cached.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .classify import vm_type_from_tags


class ResourceKind(Enum):
    """Resource kinds the lab knows how to describe."""
    VIRTUAL_WAN = "Microsoft.Network/virtualWans"
    VIRTUAL_HUB = "Microsoft.Network/virtualHubs"
    VIRTUAL_NETWORK = "Microsoft.Network/virtualNetworks"
    PUBLIC_IP = "Microsoft.Network/publicIPAddresses"
    NETWORK_SECURITY_GROUP = "Microsoft.Network/networkSecurityGroups"
    NETWORK_INTERFACE = "Microsoft.Network/networkInterfaces"
    VIRTUAL_MACHINE = "Microsoft.Compute/virtualMachines"
    DISK = "Microsoft.Compute/disks"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, resource_type: str) -> "ResourceKind":
        """Map a provider resource type string onto a known kind."""
        lowered = (resource_type or "").lower()
        for kind in cls:
            if kind.value.lower() == lowered:
                return kind
        return cls.UNKNOWN


class DeploymentMode(Enum):
    """Deployment modes accepted by the provider."""
    INCREMENTAL = "Incremental"


class DeploymentState(Enum):
    """Provider-owned states of a deployment operation."""
    ACCEPTED = "Accepted"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELED = "Canceled"


DEPLOYMENT_TERMINAL_STATES = frozenset({
    DeploymentState.SUCCEEDED.value,
    DeploymentState.FAILED.value,
    DeploymentState.CANCELED.value,
})

DELETED_STATE = "Deleted"
DELETION_TERMINAL_STATES = frozenset({DELETED_STATE})


@dataclass
class ResourceGroupHandle:
    """The deployment and deletion boundary for the lab."""
    subscription_id: str
    name: str
    location: str
    tags: Dict[str, str] = field(default_factory=dict)
    provisioning_state: Optional[str] = None


@dataclass
class GenericResourceRecord:
    """Untyped view of any resource in a group."""
    resource_type: str
    name: str

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.from_type(self.resource_type)


@dataclass(frozen=True)
class DeploymentRequest:
    """A template deployment submitted to the provider."""
    name: str
    template: Dict[str, Any]
    parameters: Optional[Dict[str, Any]] = None
    mode: DeploymentMode = DeploymentMode.INCREMENTAL


@dataclass
class VirtualWanRecord:
    name: str
    location: str
    wan_type: Optional[str]
    allow_branch_to_branch: Optional[bool]
    provisioning_state: Optional[str]


@dataclass
class VirtualHubRecord:
    name: str
    location: str
    address_prefix: Optional[str]
    provisioning_state: Optional[str]
    router_asn: Optional[int] = None
    router_ips: List[str] = field(default_factory=list)
    allow_branch_to_branch: Optional[bool] = None


@dataclass
class HubConnectionRecord:
    """A hub-to-VNet connection."""
    name: str
    provisioning_state: Optional[str] = None
    remote_vnet_id: Optional[str] = None


@dataclass
class BgpConnectionRecord:
    """A BGP session between a hub (or route server) and a peer."""
    name: str
    peer_asn: Optional[int]
    peer_ip: Optional[str]
    connection_state: Optional[str]


@dataclass
class SubnetRecord:
    name: str
    address_prefix: Optional[str]


@dataclass
class VirtualNetworkRecord:
    name: str
    location: str
    address_prefixes: List[str] = field(default_factory=list)
    subnets: List[SubnetRecord] = field(default_factory=list)
    provisioning_state: Optional[str] = None


@dataclass
class PeeringRecord:
    name: str
    peering_state: Optional[str]
    provisioning_state: Optional[str] = None


@dataclass
class PublicIpRecord:
    name: str
    ip_address: Optional[str]
    allocation_method: Optional[str]
    provisioning_state: Optional[str] = None


@dataclass
class SecurityGroupRecord:
    name: str
    rule_count: int
    provisioning_state: Optional[str] = None


@dataclass
class InstanceStatus:
    """One entry of a VM instance view's status collection."""
    code: Optional[str]
    display_status: Optional[str]


@dataclass
class VirtualMachineRecord:
    name: str
    location: str
    vm_size: Optional[str] = None
    os_type: Optional[str] = None
    provisioning_state: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    nic_ids: List[str] = field(default_factory=list)

    @property
    def vm_type(self) -> str:
        return vm_type_from_tags(self.tags)


@dataclass
class NetworkInterfaceRecord:
    id: str
    name: str
    private_ip: Optional[str] = None
