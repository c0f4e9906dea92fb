import asyncio
import logging
import os
import re
import signal
from contextlib import contextmanager, suppress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .errors import (
    ScanExitError,
    ScanInProgressError,
    ScanParseError,
    ScanSpawnError,
    ScanTimeoutError,
    VersionError,
)

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "arp-scan"
UNKNOWN_VENDOR = "Unknown"

# One host per line: ip<TAB>mac<TAB>vendor
OUTPUT_FORMAT = "${ip}\t${mac}\t${vendor}"

IP_PATTERN = re.compile(
    r"(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
)
# The first separator is captured so the rest must repeat it
MAC_PATTERN = re.compile(r"[0-9a-f]{2}([:-])[0-9a-f]{2}(?:\1[0-9a-f]{2}){4}", re.IGNORECASE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DiscoveredDevice:
    """Represents a host reported by arp-scan."""
    ip: str
    mac: str
    vendor: str = UNKNOWN_VENDOR
    detected_at: datetime = field(default_factory=_utcnow)


class ArpScanner:
    """Runs arp-scan against a subnet and turns its output into devices.

    Only one scan may be in flight per instance; a second call while the
    first is unresolved fails straight away with ScanInProgressError.
    """

    def __init__(
        self,
        binary: str = DEFAULT_BINARY,
        watchdog_buffer: float = 10,
        kill_grace: float = 5,
        logger: Optional[logging.Logger] = None,
    ):
        self.binary = binary
        self.watchdog_buffer = watchdog_buffer  # seconds on top of the arp-scan timeout
        self.kill_grace = kill_grace
        self.logger = logger or logging.getLogger(__name__)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @contextmanager
    def _scan_guard(self):
        """Hold the in-progress flag for the duration of one scan."""
        if self._running:
            raise ScanInProgressError()
        self._running = True
        try:
            yield
        finally:
            self._running = False

    async def scan(self, interface: str, subnet: str, timeout: float = 5) -> list[DiscoveredDevice]:
        """
        Perform an ARP scan of a subnet through the given interface.

        Args:
            interface: Network interface to bind (e.g. "eth0")
            subnet: Target handed to arp-scan as is (e.g. "192.168.1.0/24")
            timeout: Per-host arp-scan timeout in seconds

        Returns:
            List of validated devices, in the order arp-scan reported them
        """
        if not interface or not interface.strip():
            raise ValueError("interface must be a non-empty string")
        if not subnet or not subnet.strip():
            raise ValueError("subnet must be a non-empty string")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        with self._scan_guard():
            self.logger.info("Starting ARP scan on %s for subnet %s", interface, subnet)
            try:
                devices = await self._execute_scan(interface, subnet, timeout)
            except Exception as e:
                self.logger.error("ARP scan failed: %s", e)
                raise
            self.logger.info("ARP scan completed. Found %d devices", len(devices))
            return devices

    def _build_args(self, interface: str, subnet: str, timeout: float) -> list[str]:
        return [
            "-I", interface,
            "-t", str(round(timeout * 1000)),  # arp-scan wants milliseconds
            "--format", OUTPUT_FORMAT,
            "--plain",
            "--quiet",
            subnet,
        ]

    async def _execute_scan(self, interface: str, subnet: str, timeout: float) -> list[DiscoveredDevice]:
        """Run arp-scan to completion, or terminate it once the watchdog fires."""
        args = self._build_args(interface, subnet, timeout)
        self.logger.debug("Executing: %s %s", self.binary, " ".join(args))

        loop = asyncio.get_running_loop()
        started = loop.time()

        try:
            process = await asyncio.create_subprocess_exec(
                self.binary, *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                # Own process group, so wrapper scripts and their children are signalled together
                start_new_session=True,
            )
        except (OSError, ValueError) as e:
            self.logger.error("Failed to start arp-scan process: %s", e)
            raise ScanSpawnError(f"Failed to execute arp-scan: {getattr(e, 'strerror', None) or e}") from e

        # Completed exactly once, by whichever of exit or watchdog comes first
        outcome: asyncio.Future = loop.create_future()

        # arp-scan's -t bounds each probe, not the whole run
        deadline = timeout + self.watchdog_buffer

        def on_deadline():
            if outcome.done():
                return
            self.logger.warning("arp-scan still running after %ss, terminating", deadline)
            self._terminate(process)
            outcome.set_exception(ScanTimeoutError())

        watchdog = loop.call_at(started + deadline, on_deadline)
        collector = asyncio.ensure_future(self._collect(process, outcome))

        try:
            return await outcome
        finally:
            watchdog.cancel()
            await self._reap(process, collector)

    async def _collect(self, process: asyncio.subprocess.Process, outcome: asyncio.Future) -> None:
        try:
            stdout, stderr = await process.communicate()
        except Exception as e:
            if not outcome.done():
                outcome.set_exception(e)
            return

        if outcome.done():
            return

        if process.returncode != 0:
            stderr_text = stderr.decode("utf-8", errors="replace")
            self.logger.error("arp-scan exited with code %s: %s", process.returncode, stderr_text)
            outcome.set_exception(ScanExitError(process.returncode, stderr_text))
            return

        try:
            devices = self._parse_output(stdout.decode("utf-8", errors="replace"))
        except Exception as e:
            error = ScanParseError(f"Failed to parse arp-scan output: {e}")
            error.__cause__ = e
            outcome.set_exception(error)
            return

        outcome.set_result(devices)

    async def _reap(self, process: asyncio.subprocess.Process, collector: asyncio.Future) -> None:
        """Make sure the child has exited before the scan call returns."""
        if collector.done():
            return

        # Reached on timeout or when the awaiting task was cancelled
        self._terminate(process)
        try:
            await asyncio.wait_for(asyncio.shield(collector), self.kill_grace)
        except asyncio.TimeoutError:
            # The output pipes are still open, so something in the group survived SIGTERM
            self.logger.warning("arp-scan process group still running after SIGTERM, killing it")
            self._signal_group(process, signal.SIGKILL)
            await collector

    @classmethod
    def _terminate(cls, process: asyncio.subprocess.Process) -> None:
        cls._signal_group(process, signal.SIGTERM)

    @staticmethod
    def _signal_group(process: asyncio.subprocess.Process, sig: int) -> None:
        """Signal arp-scan and every process it started.

        The group outlives its leader while a descendant still holds the
        output pipes, so it is signalled even when arp-scan itself has exited.
        """
        with suppress(ProcessLookupError, PermissionError):
            os.killpg(process.pid, sig)

    def _parse_output(self, output: str) -> list[DiscoveredDevice]:
        """Parse arp-scan output produced with OUTPUT_FORMAT."""
        devices = []

        for line in output.splitlines():
            if not line.strip():
                continue

            parts = line.split("\t")
            if len(parts) < 2:
                self.logger.warning("Skipping malformed arp-scan line: %r", line)
                continue

            vendor = parts[2].strip() if len(parts) > 2 else ""
            # Stamped per line, a long scan yields slightly different times
            device = DiscoveredDevice(
                ip=parts[0].strip(),
                mac=parts[1].strip().lower(),
                vendor=vendor or UNKNOWN_VENDOR,
                detected_at=_utcnow(),
            )

            if self._is_valid_ip(device.ip) and self._is_valid_mac(device.mac):
                devices.append(device)
            else:
                self.logger.warning("Invalid device data: %r", line)

        return devices

    @staticmethod
    def _is_valid_ip(ip: str) -> bool:
        return IP_PATTERN.fullmatch(ip) is not None

    @staticmethod
    def _is_valid_mac(mac: str) -> bool:
        return MAC_PATTERN.fullmatch(mac) is not None

    @staticmethod
    async def check_availability(binary: str = DEFAULT_BINARY) -> bool:
        """Check if arp-scan can be found on PATH."""
        try:
            process = await asyncio.create_subprocess_exec(
                "which", binary,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await process.wait()
        except (OSError, ValueError) as e:
            logger.debug("Availability probe for %s failed: %s", binary, e)
            return False
        return process.returncode == 0

    @staticmethod
    async def get_version(binary: str = DEFAULT_BINARY) -> str:
        """Get the version banner printed by `arp-scan --version`."""
        try:
            process = await asyncio.create_subprocess_exec(
                binary, "--version",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
            output, _ = await process.communicate()
        except (OSError, ValueError) as e:
            logger.debug("Version probe for %s failed: %s", binary, e)
            raise VersionError() from e

        if process.returncode != 0:
            raise VersionError()
        return output.decode("utf-8", errors="replace").strip()
