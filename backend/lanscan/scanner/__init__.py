# Scanner module
from .arp_scanner import ArpScanner, DiscoveredDevice
from .errors import (
    ArpScanError,
    ScanExitError,
    ScanInProgressError,
    ScanParseError,
    ScanSpawnError,
    ScanTimeoutError,
    VersionError,
)

__all__ = [
    "ArpScanner",
    "DiscoveredDevice",
    "ArpScanError",
    "ScanExitError",
    "ScanInProgressError",
    "ScanParseError",
    "ScanSpawnError",
    "ScanTimeoutError",
    "VersionError",
]
