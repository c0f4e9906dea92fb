from fastapi import APIRouter, Depends, HTTPException
import logging

from ..core.config import settings
from ..scanner import (
    ArpScanner,
    ScanExitError,
    ScanInProgressError,
    ScanParseError,
    ScanSpawnError,
    ScanTimeoutError,
    VersionError,
)
from .schemas import (
    DeviceResponse,
    ScanRequest,
    ScanResponse,
    ScannerStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_scanner() -> ArpScanner:
    """Dependency returning the application-wide scanner."""
    from ..main import scanner
    return scanner


@router.get("/scanner/status", response_model=ScannerStatus)
async def get_scanner_status(scanner: ArpScanner = Depends(get_scanner)):
    """Report whether arp-scan is installed and which version it is."""
    available = await ArpScanner.check_availability(scanner.binary)

    version = None
    if available:
        try:
            version = await ArpScanner.get_version(scanner.binary)
        except VersionError as e:
            logger.warning("%s", e)

    return ScannerStatus(
        available=available,
        version=version,
        scan_in_progress=scanner.is_running,
    )


@router.post("/scan", response_model=ScanResponse)
async def run_scan(
    request: ScanRequest,
    scanner: ArpScanner = Depends(get_scanner)
):
    """Run an ARP scan and return the devices that answered."""
    interface = request.interface or settings.DEFAULT_INTERFACE
    subnet = request.subnet or settings.DEFAULT_SUBNET
    timeout = request.timeout or settings.SCAN_TIMEOUT

    if not interface:
        raise HTTPException(status_code=422, detail="No interface given and DEFAULT_INTERFACE is not set")
    if not subnet:
        raise HTTPException(status_code=422, detail="No subnet given and DEFAULT_SUBNET is not set")

    try:
        devices = await scanner.scan(interface, subnet, timeout)
    except ScanInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ScanSpawnError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ScanExitError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ScanTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))
    except ScanParseError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ScanResponse(
        interface=interface,
        subnet=subnet,
        devices_found=len(devices),
        devices=[DeviceResponse.model_validate(d) for d in devices],
    )
