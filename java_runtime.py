"""
java_runtime.py
===============
JDK discovery and validation for the "Configure Java Runtime" panel.

Capabilities:
  - Enumerate JDK candidates (java.home setting, JDK_HOME, JAVA_HOME, auto-detect)
  - Auto-detect a JDK home (registry / java_home / javac on PATH)
  - Validate each candidate (javac present, ``java -version`` >= 11)
  - Decide whether the runtime the language server will pick is usable

Cross-platform notes:
  Windows  – ``.exe`` suffix, JavaSoft registry keys
  macOS    – /usr/libexec/java_home
  Linux    – javac on PATH, symlinks resolved
"""

from __future__ import annotations

import asyncio
import logging
import os
import platform
import re
import shutil
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from settings import Settings

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
#  Constants
# ──────────────────────────────────────────────

MIN_JDK_VERSION = 11

JAVA_HOME_SETTING = "java.home"
JAVA_HOME_ACTION_URI = "command:workbench.action.openSettings?%22java.home%22"
VERSION_TIMEOUT_SETTING = "javaRuntime.versionTimeout"

NOT_A_JDK_HINT = "This path is not pointing to a JDK."
REMOVE_BIN_HINT = ' Try remove the "bin" from the path.'

# Registry locations written by the Oracle / OpenJDK Windows installers
_REGISTRY_KEYS = (
    r"SOFTWARE\JavaSoft\JDK",
    r"SOFTWARE\JavaSoft\Java Development Kit",
)

_VERSION_TOKEN_RE = re.compile(r'version "(.*)"')
_DIGITS_RE = re.compile(r"\d+")


class JavaHomeNotFoundError(Exception):
    """Raised when no JDK home could be auto-detected."""


# ──────────────────────────────────────────────
#  Entry Dataclass
# ──────────────────────────────────────────────

class JavaRuntimeEntryType(str, Enum):
    """Where a candidate path came from."""

    USER_SETTING = "UserSetting"
    ENVIRONMENT_VARIABLE = "EnvironmentVariable"
    OTHER = "Other"


@dataclass
class JavaRuntimeEntry:
    """One JDK candidate examined during discovery."""

    name: str
    path: Optional[str]
    type: JavaRuntimeEntryType
    action_uri: Optional[str] = None
    is_valid: Optional[bool] = None   # None until validated
    hint: Optional[str] = None        # Only set when invalid

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape posted to the runtime panel."""
        data: Dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "type": self.type.value,
        }
        if self.action_uri is not None:
            data["actionUri"] = self.action_uri
        if self.is_valid is not None:
            data["isValid"] = self.is_valid
        if self.hint is not None:
            data["hint"] = self.hint
        return data


# ──────────────────────────────────────────────
#  Platform Helpers
# ──────────────────────────────────────────────

def _is_windows() -> bool:
    return platform.system() == "Windows"


def javac_filename() -> str:
    """Relative path of the compiler binary inside a JDK root."""
    return os.path.join("bin", "javac.exe" if _is_windows() else "javac")


def java_filename() -> str:
    """Relative path of the runtime binary inside a JDK root."""
    return os.path.join("bin", "java.exe" if _is_windows() else "java")


# ──────────────────────────────────────────────
#  Version Parsing
# ──────────────────────────────────────────────

def extract_version_token(content: str) -> Optional[str]:
    """Return the quoted token after ``version`` in a ``java -version`` banner."""
    match = _VERSION_TOKEN_RE.search(content)
    if not match:
        return None
    return match.group(1)


def leading_major(version: str) -> int:
    """
    Extract the major version from a version token.

    Legacy tokens drop their ``1.`` prefix first, so ``1.8.0_292`` → 8
    and ``11.0.2`` → 11. Returns 0 when the token holds no digits.
    """
    if version.startswith("1."):
        version = version[2:]
    match = _DIGITS_RE.search(version)
    if not match:
        return 0
    return int(match.group(0))


def parse_major_version(content: str) -> int:
    """Parse the major Java version out of ``java -version`` output (0 if unknown)."""
    token = extract_version_token(content)
    if token is None:
        return 0
    return leading_major(token)


# ──────────────────────────────────────────────
#  Probing
# ──────────────────────────────────────────────

def _expand(java_home: str) -> str:
    return os.path.expanduser(java_home)


async def get_java_version(
    java_home: Optional[str], timeout: Optional[float] = None
) -> int:
    """
    Run ``<java_home>/bin/java -version`` and parse its stderr.

    Any failure to execute counts as version 0. Without a ``timeout`` the
    call waits for the process to exit.
    """
    if not java_home:
        return 0

    binary = os.path.abspath(os.path.join(_expand(java_home), java_filename()))
    try:
        proc = await asyncio.create_subprocess_exec(
            binary, "-version",
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.debug("java -version failed for %s: %s", binary, exc)
        return 0

    communicate = proc.communicate()
    try:
        _, stderr = await asyncio.wait_for(communicate, timeout)
    except asyncio.TimeoutError:
        logger.warning("java -version timed out after %ss: %s", timeout, binary)
        return 0
    except Exception as exc:
        logger.debug("java -version failed for %s: %s", binary, exc)
        return 0
    finally:
        communicate.close()
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()

    return parse_major_version(stderr.decode("utf-8", errors="replace"))


def check_jdk_installation(java_home: Optional[str]) -> bool:
    """Return True if ``bin/javac`` exists under the (tilde-expanded) root."""
    if not java_home:
        return False
    return os.path.exists(os.path.join(_expand(java_home), javac_filename()))


# ──────────────────────────────────────────────
#  Auto-Detection
# ──────────────────────────────────────────────

def _java_home_from_registry() -> Optional[str]:
    """Read JavaHome of the current JDK from the Windows registry."""
    import winreg

    for key_path in _REGISTRY_KEYS:
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key_path) as key:
                current, _ = winreg.QueryValueEx(key, "CurrentVersion")
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, f"{key_path}\\{current}") as key:
                home, _ = winreg.QueryValueEx(key, "JavaHome")
        except OSError:
            continue
        if home:
            return home
    return None


def _java_home_from_macos() -> Optional[str]:
    """Ask /usr/libexec/java_home for the default JDK."""
    try:
        result = subprocess.run(
            ["/usr/libexec/java_home"],
            capture_output=True, text=True, timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("/usr/libexec/java_home failed: %s", exc)
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def _java_home_from_path() -> Optional[str]:
    """Resolve ``javac`` on PATH (through symlinks) to its JDK root."""
    javac = shutil.which("javac")
    if not javac:
        return None
    # javac binary → bin/ → JDK root
    return str(Path(javac).resolve().parent.parent)


def find_java_home(env: Optional[Mapping[str, str]] = None) -> str:
    """
    Auto-detect a JDK home directory.

    Search order:
      1. JAVA_HOME, if it holds a compiler
      2. Windows registry / macOS java_home
      3. javac on PATH

    Raises:
        JavaHomeNotFoundError: if every probe comes up empty
    """
    env = os.environ if env is None else env

    java_home = env.get("JAVA_HOME")
    if java_home and check_jdk_installation(java_home):
        return java_home

    system = platform.system()
    found: Optional[str] = None
    if system == "Windows":
        found = _java_home_from_registry()
    elif system == "Darwin":
        found = _java_home_from_macos()

    if not found:
        found = _java_home_from_path()

    if not found:
        raise JavaHomeNotFoundError("No JDK home could be detected")
    return found


# ──────────────────────────────────────────────
#  Discovery
# ──────────────────────────────────────────────

async def find_possible_jdk_installations(
    settings: Settings, env: Optional[Mapping[str, str]] = None
) -> List[JavaRuntimeEntry]:
    """
    Enumerate JDK candidates in priority order.

    The auto-detected entry is appended only when detection succeeds.
    """
    env = os.environ if env is None else env

    entries = [
        JavaRuntimeEntry(
            name=JAVA_HOME_SETTING,
            path=settings.get(JAVA_HOME_SETTING),
            type=JavaRuntimeEntryType.USER_SETTING,
            action_uri=JAVA_HOME_ACTION_URI,
        ),
        JavaRuntimeEntry(
            name="JDK_HOME",
            path=env.get("JDK_HOME"),
            type=JavaRuntimeEntryType.ENVIRONMENT_VARIABLE,
        ),
        JavaRuntimeEntry(
            name="JAVA_HOME",
            path=env.get("JAVA_HOME"),
            type=JavaRuntimeEntryType.ENVIRONMENT_VARIABLE,
        ),
    ]

    try:
        home = await asyncio.to_thread(find_java_home, env)
    except JavaHomeNotFoundError as exc:
        logger.debug("Auto-detection skipped: %s", exc)
    else:
        entries.append(JavaRuntimeEntry(
            name="Other", path=home, type=JavaRuntimeEntryType.OTHER,
        ))

    return entries


def version_timeout(settings: Settings) -> Optional[float]:
    """Seconds allowed for ``java -version``; None (no limit) if unset or unusable."""
    raw = settings.get(VERSION_TIMEOUT_SETTING)
    if raw is None:
        return None
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring %s=%r: not a number", VERSION_TIMEOUT_SETTING, raw)
        return None
    if not timeout > 0:
        logger.warning("Ignoring %s=%r: must be positive", VERSION_TIMEOUT_SETTING, raw)
        return None
    return timeout


async def _validate_entry(
    entry: JavaRuntimeEntry, timeout: Optional[float]
) -> JavaRuntimeEntry:
    if not check_jdk_installation(entry.path):
        entry.is_valid = False
        entry.hint = NOT_A_JDK_HINT
        if entry.path and Path(entry.path).name.lower() == "bin":
            entry.hint += REMOVE_BIN_HINT
        return entry

    version = await get_java_version(entry.path, timeout)
    if version < MIN_JDK_VERSION:
        entry.is_valid = False
        entry.hint = (
            f"JDK {MIN_JDK_VERSION}+ is required while the path is "
            f"pointing to version {version}"
        )
        return entry

    entry.is_valid = True
    return entry


async def find_java_runtime_entries(
    settings: Settings, env: Optional[Mapping[str, str]] = None
) -> List[JavaRuntimeEntry]:
    """Enumerate candidates and validate each one (results keep enumeration order)."""
    entries = await find_possible_jdk_installations(settings, env)
    timeout = version_timeout(settings)
    validated = await asyncio.gather(*(_validate_entry(e, timeout) for e in entries))

    for entry in validated:
        if entry.is_valid:
            logger.info("Valid JDK from %s: %s", entry.name, entry.path)
        elif entry.path:
            logger.info("Invalid JDK from %s: %s (%s)", entry.name, entry.path, entry.hint)
    return list(validated)


def current_java_runtime(entries: List[JavaRuntimeEntry]) -> Optional[JavaRuntimeEntry]:
    """The language server takes the first non-empty path."""
    return next((e for e in entries if e.path), None)


def runtime_validity(entries: List[JavaRuntimeEntry]) -> bool:
    """
    Decide validity from already validated entries.

    The current runtime decides. With no non-empty path at all, any valid
    entry counts.
    """
    current = current_java_runtime(entries)
    if current is not None:
        return bool(current.is_valid)

    return any(e.is_valid for e in entries)


async def validate_java_runtime(
    settings: Settings, env: Optional[Mapping[str, str]] = None
) -> bool:
    """Return whether the JDK the language server will use is valid."""
    entries = await find_java_runtime_entries(settings, env)
    return runtime_validity(entries)
