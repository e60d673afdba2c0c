"""
release_advisor.py
==================
Suggest an OpenJDK download by asking the AdoptOpenJDK release-metadata API
for the latest release matching the current OS and CPU architecture.

The response is returned as decoded JSON and is never interpreted here;
the runtime panel forwards it to the UI unchanged.
"""

from __future__ import annotations

import logging
import platform
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
#  Constants
# ──────────────────────────────────────────────

DEFAULT_API_BASE = "https://api.adoptopenjdk.net"
DEFAULT_JDK_VERSION = "openjdk11"
DEFAULT_JVM_IMPL = "hotspot"

# Map platform.system() → API OS identifier (anything else is linux)
_OS_MAP: Dict[str, str] = {
    "Windows": "windows",
    "Darwin": "mac",
    "Linux": "linux",
}

# Map platform.machine() → API arch identifier
_ARCH_MAP: Dict[str, str] = {
    "x86_64": "x64",
    "AMD64": "x64",
    "amd64": "x64",
    "x86": "x32",
    "i386": "x32",
    "i686": "x32",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "ARM64": "aarch64",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


class ReleaseAdvisorError(Exception):
    """The release-metadata service could not be reached or answered badly."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


# ──────────────────────────────────────────────
#  Platform Mapping
# ──────────────────────────────────────────────

def current_os(system: Optional[str] = None) -> str:
    """Return ``windows``, ``mac`` or ``linux`` for the running platform."""
    system = system or platform.system()
    return _OS_MAP.get(system, "linux")


def current_arch(machine: Optional[str] = None) -> str:
    """Return the API arch token; 32-bit x86 maps to ``x32``."""
    machine = machine or platform.machine()
    return _ARCH_MAP.get(machine, machine.lower() or "x64")


def get_release_info_url(
    jdk_version: str = DEFAULT_JDK_VERSION,
    impl: str = DEFAULT_JVM_IMPL,
    os_name: Optional[str] = None,
    arch: Optional[str] = None,
    api_base: str = DEFAULT_API_BASE,
) -> str:
    """Build the latest-release query URL."""
    os_name = os_name or current_os()
    arch = arch or current_arch()
    return (
        f"{api_base.rstrip('/')}/v2/info/releases/{jdk_version}"
        f"?openjdk_impl={impl}&arch={arch}&os={os_name}&type=jdk&release=latest"
    )


# ──────────────────────────────────────────────
#  Query
# ──────────────────────────────────────────────

async def _fetch_json(session: aiohttp.ClientSession, url: str) -> Any:
    logger.info("Querying release metadata: %s", url)
    try:
        async with session.get(url) as resp:
            if not 200 <= resp.status < 300:
                raise ReleaseAdvisorError(
                    f"Release metadata service returned HTTP {resp.status}",
                    status=resp.status,
                )
            return await resp.json(content_type=None)
    except aiohttp.ClientError as exc:
        raise ReleaseAdvisorError(f"Release metadata request failed: {exc}") from exc
    except ValueError as exc:
        raise ReleaseAdvisorError(f"Release metadata is not valid JSON: {exc}") from exc


async def suggest_open_jdk(
    jdk_version: str = DEFAULT_JDK_VERSION,
    impl: str = DEFAULT_JVM_IMPL,
    session: Optional[aiohttp.ClientSession] = None,
    api_base: str = DEFAULT_API_BASE,
) -> Any:
    """
    Fetch metadata for the latest matching JDK release.

    Args:
        jdk_version: Distribution name, e.g. ``openjdk11``
        impl:        JVM implementation, e.g. ``hotspot`` or ``openj9``
        session:     Optional aiohttp session; a private one is used if None
        api_base:    Service root URL

    Raises:
        ReleaseAdvisorError: on transport errors, non-2xx status or bad JSON
    """
    url = get_release_info_url(jdk_version, impl, api_base=api_base)
    if session is None:
        async with aiohttp.ClientSession() as own_session:
            return await _fetch_json(own_session, url)
    return await _fetch_json(session, url)
