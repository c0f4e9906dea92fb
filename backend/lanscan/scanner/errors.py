"""Errors raised by the arp-scan wrapper."""


class ArpScanError(Exception):
    """Base class for every scanner failure."""


class ScanInProgressError(ArpScanError):
    """A scan was requested while another one is still running."""

    def __init__(self, message: str = "ARP scan already in progress"):
        super().__init__(message)


class ScanSpawnError(ArpScanError):
    """The arp-scan process could not be started."""


class ScanExitError(ArpScanError):
    """arp-scan ran and exited with a non-zero status."""

    def __init__(self, returncode: int, stderr: str):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"arp-scan failed with exit code {returncode}: {stderr}")


class ScanTimeoutError(ArpScanError, TimeoutError):
    """The scan overran its wall-clock budget and the process was terminated."""

    def __init__(self, message: str = "ARP scan timed out"):
        super().__init__(message)


class ScanParseError(ArpScanError):
    """Unexpected failure while turning arp-scan output into devices."""


class VersionError(ArpScanError):
    """`arp-scan --version` could not be run or exited non-zero."""

    def __init__(self, message: str = "Failed to get arp-scan version"):
        super().__init__(message)
