"""Node identity resolution for wemqtt.

The bridge namespaces every topic and discovery unique id with a node id
derived from the machine's LAN address, so several bridges can share one
broker without their entities colliding.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass, field
from typing import Any

import psutil

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESS = "127.0.0.1"


@dataclass(frozen=True)
class NodeIdentity:
    """Identity of this bridge instance.

    Attributes:
        ip: The resolved local IPv4 address.
        node_id: Topic-safe identifier derived from the address.
        device_name: Display name of the Home Assistant device.
        device: Shared Home Assistant device descriptor.
    """

    ip: str
    node_id: str
    device_name: str
    device: dict[str, Any] = field(compare=False, hash=False)


def _is_external_ipv4(address: str) -> bool:
    try:
        return not ipaddress.IPv4Address(address).is_loopback
    except ipaddress.AddressValueError:
        return False


def get_local_ipv4(prefer_prefix: str = "192.168.178") -> str:
    """Find the local IPv4 address used to identify this node.

    Args:
        prefer_prefix: Address prefix of the preferred (home) network.

    Returns:
        The first non-loopback IPv4 address starting with prefer_prefix,
        otherwise the first non-loopback IPv4 address, otherwise the
        loopback address.
    """
    candidates = []
    for name, addrs in psutil.net_if_addrs().items():
        for addr in addrs:
            if addr.family != socket.AF_INET or not _is_external_ipv4(addr.address):
                continue
            logger.debug("Found IPv4 address %s on '%s'", addr.address, name)
            candidates.append(addr.address)

    for address in candidates:
        if address.startswith(prefer_prefix):
            return address
    if candidates:
        return candidates[0]

    logger.warning("No non-loopback IPv4 address found, using %s", LOOPBACK_ADDRESS)
    return LOOPBACK_ADDRESS


def make_node_id(ip: str) -> str:
    """Build the topic-safe node id for an address.

    Examples:
        >>> make_node_id("192.168.178.20")
        'wallpaper_engine_192_168_178_20'
    """
    return "wallpaper_engine_" + ip.replace(".", "_")


def make_device(ip: str, device_name: str) -> dict[str, Any]:
    """Build the Home Assistant device descriptor shared by all entities."""
    return {
        "identifiers": [f"wallpaper-engine-{ip}"],
        "manufacturer": "Wallpaper Engine",
        "model": "Wallpaper Engine (local)",
        "name": device_name,
    }


def resolve_identity(
    name: str = "Wallpaper Engine", prefer_prefix: str = "192.168.178"
) -> NodeIdentity:
    """Resolve the identity of this node from the host network configuration.

    Args:
        name: Display name prefix for the device.
        prefer_prefix: Address prefix of the preferred network.

    Returns:
        The NodeIdentity for this process.
    """
    ip = get_local_ipv4(prefer_prefix)
    device_name = f"{name} ({ip})"
    identity = NodeIdentity(
        ip=ip,
        node_id=make_node_id(ip),
        device_name=device_name,
        device=make_device(ip, device_name),
    )
    logger.info("Resolved node id '%s' from address %s", identity.node_id, ip)
    return identity
