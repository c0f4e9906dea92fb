from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class ScanRequest(BaseModel):
    """Scan request schema. Omitted fields fall back to the configured defaults."""
    interface: Optional[str] = Field(None, min_length=1)
    subnet: Optional[str] = Field(None, min_length=1)
    timeout: Optional[float] = Field(None, gt=0, description="Per-host timeout in seconds")


class DeviceResponse(BaseModel):
    """Discovered device schema."""
    model_config = ConfigDict(from_attributes=True)

    ip: str
    mac: str
    vendor: str
    detected_at: datetime


class ScanResponse(BaseModel):
    """Scan result schema."""
    interface: str
    subnet: str
    devices_found: int
    devices: list[DeviceResponse]


class ScannerStatus(BaseModel):
    """arp-scan availability schema."""
    available: bool
    version: Optional[str] = None
    scan_in_progress: bool
