import logging

from pyfibernet.acs.models import DeviceInfo, Diagnosis

log = logging.getLogger(__name__)

# GPON class B+ receiver window (dBm)
RX_MIN_DBM = -27.0
RX_MAX_DBM = -8.0
MIN_UPTIME_SECONDS = 30 * 60
MAX_TEMPERATURE_CELSIUS = 70.0


def diagnose(info: DeviceInfo) -> Diagnosis:
    """
    Rule based health check of an ONT used by the support chat.

    Checks are independent; the first failing rule sets the headline cause
    and every failing rule is listed in issues.
    """
    result = Diagnosis()
    rx = info.optical_power.rx_dbm

    if rx == 0.0:
        result.issues.append("Optical RX level not reported by the device.")
        result.connection_status = "Unknown"
    elif rx <= RX_MIN_DBM:
        result.issues.append(f"Optical RX level too low ({rx:.1f} dBm). Check the fibre and connectors.")
        result.connection_status = "Unstable"
    elif rx > RX_MAX_DBM:
        result.issues.append(f"Optical RX level too high ({rx:.1f} dBm). Receiver may be saturated.")
        result.connection_status = "Unstable"

    if info.uptime_seconds and info.uptime_seconds < MIN_UPTIME_SECONDS:
        result.issues.append("Uptime is very low. The device was restarted recently or is losing power.")
        result.reboot_recommended = True

    if info.temperature_celsius is not None and info.temperature_celsius >= MAX_TEMPERATURE_CELSIUS:
        result.issues.append(f"Device temperature is high ({info.temperature_celsius:.0f} C).")
        result.reboot_recommended = True

    if result.issues:
        result.cause = result.issues[0]
    log.debug(f"Diagnosis for {info.device_key}: {result}")
    return result
