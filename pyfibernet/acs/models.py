"""Pydantic models for device telemetry and command acknowledgements."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OpticalPower(BaseModel):
    """PON optical levels in dBm (0.0 when the device does not report them)."""
    rx_dbm: float = 0.0
    tx_dbm: float = 0.0


class DeviceInfo(BaseModel):
    """Identity and health of a customer premises device (ONT).

    Rebuilt on every read from the raw ACS parameter tree. Every field has
    its own default so a partially populated tree still yields a complete
    object.

    Attributes:
        device_key: ACS device identifier used for the read
        manufacturer: Vendor name (defaults to "Huawei")
        model: Model name
        serial_number: Serial number (defaults to device_key)
        firmware_version: Software version string
        uptime_seconds: Seconds since last boot
        temperature_celsius: Optical module temperature, None if not reported
        optical_power: RX/TX optical levels
        last_inform: Last time the device contacted the ACS
    """
    device_key: str
    manufacturer: str = "Huawei"
    model: str = "Unknown"
    serial_number: str = "Unknown"
    firmware_version: str = "Unknown"
    uptime_seconds: int = 0
    temperature_celsius: Optional[float] = None
    optical_power: OpticalPower = Field(default_factory=OpticalPower)
    last_inform: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ConnectionType(str, Enum):
    WIFI = "wifi"
    ETHERNET = "ethernet"


class Bandwidth(BaseModel):
    download_mbps: float = 0.0
    upload_mbps: float = 0.0


class ConnectedDevice(BaseModel):
    """A host seen by the ONT, either in the wired host table or associated
    to one of its Wi-Fi access points."""
    id: str
    display_name: str
    ip_address: str = ""
    mac_address: str = ""
    connection_type: ConnectionType
    connected: bool = True
    signal_percent: Optional[int] = None
    bandwidth: Optional[Bandwidth] = None
    manufacturer: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class CommandAccepted(BaseModel):
    """Acknowledgement that the ACS accepted a task for a device.

    This only means the task was queued or handed to the device. The ACS
    does not report whether the device actually applied it, so there is no
    "applied" counterpart to this type. Re-read the device to observe the
    effect.
    """
    device_key: str
    task: str
    task_id: Optional[str] = None
    queued: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class Diagnosis(BaseModel):
    connection_status: str = "Online"
    cause: str = "No critical fault detected."
    reboot_recommended: bool = False
    issues: List[str] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
