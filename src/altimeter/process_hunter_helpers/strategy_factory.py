"""Platform strategy selection, evaluated once when a hunter is built."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..constants.process import PROCESS_NAMES
from .platform_strategy import PlatformStrategy
from .port_tool_detector import PortToolDetector
from .unix_strategy import UnixStrategy
from .windows_strategy import WindowsStrategy

_ARM_MACHINES = {"arm64", "aarch64", "armv8", "armv8l"}


@dataclass(frozen=True)
class StrategySelection:
    strategy: PlatformStrategy
    process_name: str


def _is_arm(machine: str) -> bool:
    return machine.lower() in _ARM_MACHINES


def select_strategy(
    system: str,
    machine: str,
    *,
    app_identity: Optional[str] = None,
    detector: Optional[PortToolDetector] = None,
) -> StrategySelection:
    """
    Pick the strategy and target executable for ``platform.system()`` /
    ``platform.machine()`` values. Unknown systems are treated as Linux.
    """
    system_lower = (system or "").lower()

    if system_lower.startswith("win"):
        return StrategySelection(WindowsStrategy(app_identity), PROCESS_NAMES["windows"])

    if system_lower == "darwin":
        name = PROCESS_NAMES["darwin_arm"] if _is_arm(machine or "") else PROCESS_NAMES["darwin_x64"]
        return StrategySelection(UnixStrategy("darwin", app_identity=app_identity, detector=detector), name)

    name = PROCESS_NAMES["linux_arm"] if _is_arm(machine or "") else PROCESS_NAMES["linux_x64"]
    return StrategySelection(UnixStrategy("linux", app_identity=app_identity, detector=detector), name)


__all__ = ["StrategySelection", "select_strategy"]
