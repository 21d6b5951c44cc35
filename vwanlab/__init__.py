"""
VWAN Lab - provisioning, inspection and teardown for Azure Virtual WAN labs.

This package provides a CLI that deploys the lab template into a resource
group, reports on the WAN, hub, network and VM resources it created, infers
connectivity posture from control-plane state, and tears the lab down.
"""

__version__ = "0.1.0"
__author__ = "VWAN Lab Automation"
