"""Tests for wemqtt.identity module."""

from __future__ import annotations

import socket
from collections import namedtuple
from unittest.mock import patch

from wemqtt.identity import (
    get_local_ipv4,
    make_device,
    make_node_id,
    resolve_identity,
)

Addr = namedtuple("Addr", ["family", "address", "netmask", "broadcast", "ptp"])


def _ipv4(address: str) -> Addr:
    return Addr(socket.AF_INET, address, "255.255.255.0", None, None)


def _ipv6(address: str) -> Addr:
    return Addr(socket.AF_INET6, address, None, None, None)


class TestGetLocalIPv4:
    """Tests for the get_local_ipv4 function."""

    @patch("wemqtt.identity.psutil.net_if_addrs")
    def test_prefers_matching_prefix(self, mock_addrs) -> None:
        """Test that an address on the preferred network wins."""
        mock_addrs.return_value = {
            "lo": [_ipv4("127.0.0.1")],
            "docker0": [_ipv4("172.17.0.1")],
            "eth0": [_ipv6("fe80::1"), _ipv4("192.168.178.20")],
        }

        assert get_local_ipv4("192.168.178") == "192.168.178.20"

    @patch("wemqtt.identity.psutil.net_if_addrs")
    def test_falls_back_to_first_external(self, mock_addrs) -> None:
        """Test fallback to the first non-loopback IPv4 address."""
        mock_addrs.return_value = {
            "lo": [_ipv4("127.0.0.1")],
            "eth0": [_ipv4("10.0.0.5")],
            "wlan0": [_ipv4("10.0.1.7")],
        }

        assert get_local_ipv4("192.168.178") == "10.0.0.5"

    @patch("wemqtt.identity.psutil.net_if_addrs")
    def test_falls_back_to_loopback(self, mock_addrs) -> None:
        """Test that a host without external IPv4 uses the loopback address."""
        mock_addrs.return_value = {
            "lo": [_ipv4("127.0.0.1")],
            "eth0": [_ipv6("fe80::1")],
        }

        assert get_local_ipv4() == "127.0.0.1"

    @patch("wemqtt.identity.psutil.net_if_addrs")
    def test_no_interfaces(self, mock_addrs) -> None:
        """Test that no interfaces at all still yields an address."""
        mock_addrs.return_value = {}

        assert get_local_ipv4() == "127.0.0.1"


class TestNodeIdentity:
    """Tests for node id and device descriptor helpers."""

    def test_node_id_has_no_dots(self) -> None:
        """Test that address separators are substituted."""
        node_id = make_node_id("192.168.178.20")

        assert node_id == "wallpaper_engine_192_168_178_20"
        assert "." not in node_id

    def test_device_descriptor(self) -> None:
        """Test the shared device descriptor."""
        device = make_device("10.0.0.5", "Wallpaper Engine (10.0.0.5)")

        assert device == {
            "identifiers": ["wallpaper-engine-10.0.0.5"],
            "manufacturer": "Wallpaper Engine",
            "model": "Wallpaper Engine (local)",
            "name": "Wallpaper Engine (10.0.0.5)",
        }

    @patch("wemqtt.identity.psutil.net_if_addrs")
    def test_resolve_identity_is_deterministic(self, mock_addrs) -> None:
        """Test that a fixed network configuration yields a fixed identity."""
        mock_addrs.return_value = {"eth0": [_ipv4("192.168.178.20")]}

        first = resolve_identity("Wallpaper Engine", "192.168.178")
        second = resolve_identity("Wallpaper Engine", "192.168.178")

        assert first == second
        assert first.node_id == "wallpaper_engine_192_168_178_20"
        assert first.device_name == "Wallpaper Engine (192.168.178.20)"
        assert first.device["name"] == first.device_name
