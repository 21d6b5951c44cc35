"""
Shared fixtures: an in-memory Resource Provider Client.
"""

from typing import Dict, List, Optional

import pytest

from vwanlab.errors import ResourceGroupNotFoundError
from vwanlab.models import (
    DELETED_STATE,
    DELETION_TERMINAL_STATES,
    DEPLOYMENT_TERMINAL_STATES,
    ResourceGroupHandle,
)
from vwanlab.operations import OperationHandle, OperationStatus

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"
RESOURCE_GROUP = "rg-vwanlab"


async def _no_sleep(_seconds):
    return None


class FakeProvider:
    """Serves records from memory and raises injected failures."""

    def __init__(self):
        self.subscription_name = "Lab Subscription"
        self.groups: Dict[str, ResourceGroupHandle] = {}
        self.resources: List = []
        self.wans: List = []
        self.hubs: List = []
        self.hub_connections: Dict[str, List] = {}
        self.bgp_connections: Dict[str, List] = {}
        self.vnets: List = []
        self.peerings: Dict[str, List] = {}
        self.public_ips: List = []
        self.nsgs: List = []
        self.vms: List = []
        self.statuses: Dict[str, List] = {}
        self.nics: Dict[str, object] = {}
        self.failures: Dict[str, Exception] = {}
        self.deployment_states: List[OperationStatus] = [
            OperationStatus(state="Accepted"),
            OperationStatus(state="Running"),
            OperationStatus(state="Succeeded"),
        ]
        self.calls: List[str] = []
        self.created: List[ResourceGroupHandle] = []
        self.submitted: List = []
        self.deleted: List[str] = []
        self.closed = False

    def add_group(self, name: str = RESOURCE_GROUP, location: str = "East US", tags: Optional[dict] = None):
        self.groups[name] = ResourceGroupHandle(
            subscription_id=SUBSCRIPTION_ID, name=name, location=location, tags=tags or {}
        )
        return self.groups[name]

    def _call(self, method: str, key: Optional[str] = None) -> None:
        self.calls.append(method)
        for failure_key in (f"{method}:{key}", method):
            if failure_key in self.failures:
                raise self.failures[failure_key]

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def get_subscription_name(self):
        self._call("get_subscription_name")
        return self.subscription_name

    async def get_resource_group(self, name):
        self._call("get_resource_group", name)
        if name not in self.groups:
            raise ResourceGroupNotFoundError(name)
        return self.groups[name]

    async def create_resource_group(self, name, location, tags):
        self._call("create_resource_group", name)
        if name not in self.groups:
            self.groups[name] = ResourceGroupHandle(
                subscription_id=SUBSCRIPTION_ID, name=name, location=location, tags=dict(tags)
            )
            self.created.append(self.groups[name])
        return self.groups[name]

    async def _iterate(self, method, items, key=None):
        self._call(method, key)
        for item in items:
            yield item

    def list_resources(self, group):
        return self._iterate("list_resources", self.resources)

    def list_virtual_wans(self, group):
        return self._iterate("list_virtual_wans", self.wans)

    def list_virtual_hubs(self, group):
        return self._iterate("list_virtual_hubs", self.hubs)

    def list_hub_connections(self, group, hub):
        return self._iterate("list_hub_connections", self.hub_connections.get(hub, []), hub)

    def list_bgp_connections(self, group, hub):
        return self._iterate("list_bgp_connections", self.bgp_connections.get(hub, []), hub)

    def list_virtual_networks(self, group):
        return self._iterate("list_virtual_networks", self.vnets)

    def list_peerings(self, group, vnet):
        return self._iterate("list_peerings", self.peerings.get(vnet, []), vnet)

    def list_public_ips(self, group):
        return self._iterate("list_public_ips", self.public_ips)

    def list_security_groups(self, group):
        return self._iterate("list_security_groups", self.nsgs)

    def list_virtual_machines(self, group):
        return self._iterate("list_virtual_machines", self.vms)

    async def get_instance_statuses(self, group, vm):
        self._call("get_instance_statuses", vm)
        return self.statuses.get(vm, [])

    async def get_network_interface(self, nic_id):
        self._call("get_network_interface", nic_id)
        return self.nics[nic_id]

    async def begin_deployment(self, group, request):
        self._call("begin_deployment", group)
        self.submitted.append(request)
        states = iter(self.deployment_states)
        last = {"status": next(states)}

        async def probe():
            last["status"] = next(states, last["status"])
            return last["status"]

        return OperationHandle(
            name=f"Deployment {request.name}",
            probe=probe,
            terminal_states=DEPLOYMENT_TERMINAL_STATES,
            initial=last["status"],
            poll_interval=0,
            sleep=_no_sleep,
        )

    async def begin_delete_resource_group(self, group):
        self._call("begin_delete_resource_group", group)
        self.deleted.append(group)

        async def probe():
            self.groups.pop(group, None)
            return OperationStatus(state=DELETED_STATE)

        return OperationHandle(
            name=f"Delete resource group {group}",
            probe=probe,
            terminal_states=DELETION_TERMINAL_STATES,
            initial=OperationStatus(state="Deleting"),
            poll_interval=0,
            sleep=_no_sleep,
        )


@pytest.fixture
def provider():
    fake = FakeProvider()
    fake.add_group()
    return fake
