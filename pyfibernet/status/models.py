"""Pydantic models for third-party service status."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Reports/baseline ratio thresholds for degraded services
CRITICAL_RATIO = 5.0
MAJOR_RATIO = 3.0
MINOR_RATIO = 1.5


class RawState(str, Enum):
    """Three-state answer shared by every status provider."""
    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"


class StatusState(str, Enum):
    OPERATIONAL = "operational"
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


def derive_state(raw: RawState, report_signal: float = 0.0) -> StatusState:
    """Map a provider answer plus report signal to the published state."""
    if raw == RawState.UNKNOWN:
        return StatusState.UNKNOWN
    if raw == RawState.OPERATIONAL:
        return StatusState.OPERATIONAL
    if report_signal > CRITICAL_RATIO:
        return StatusState.CRITICAL
    if report_signal > MAJOR_RATIO:
        return StatusState.MAJOR
    return StatusState.MINOR


class RawStatusResult(BaseModel):
    """What a provider saw for one service."""
    model_config = ConfigDict(frozen=True)

    state: RawState
    indicator_text: str = ""
    report_signal: float = 0.0
    source_label: str = ""


class TrackedService(BaseModel):
    """Entry of the tracked-service registry.

    Attributes:
        key: Slug used in the status page URL (e.g. "whatsapp-messenger")
        name: Display name (e.g. "WhatsApp")
        aliases: Extra words the chat layer may use for this service
    """
    key: str
    name: str
    aliases: List[str] = Field(default_factory=list)


class ServiceStatus(BaseModel):
    """Published status of one tracked service.

    Immutable: every refresh replaces the cached instance. Build it with
    from_result() or unknown(); state is always derived, never chosen.
    """
    model_config = ConfigDict(frozen=True)

    service_key: str
    display_name: str
    state: StatusState = StatusState.UNKNOWN
    report_signal: float = 0.0
    source_label: str = ""
    observed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.state in (StatusState.MINOR, StatusState.MAJOR, StatusState.CRITICAL)

    @classmethod
    def from_result(cls, service: TrackedService, result: RawStatusResult) -> "ServiceStatus":
        return cls(
            service_key=service.key,
            display_name=service.name,
            state=derive_state(result.state, result.report_signal),
            report_signal=result.report_signal,
            source_label=result.source_label,
            message=result.indicator_text or None,
        )

    @classmethod
    def unknown(cls, service: TrackedService, source_label: str = "unavailable") -> "ServiceStatus":
        return cls(service_key=service.key, display_name=service.name, source_label=source_label)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data['degraded'] = self.degraded
        return data
