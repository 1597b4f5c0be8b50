# pyFiberNet Module - Device Telemetry Normalizer
# -*- coding: utf-8 -*-
"""
 Build typed views (DeviceInfo, ConnectedDevice) from a raw ACS parameter tree

 Functions
    build_device_info(tree, device_key)         # Return DeviceInfo
    build_connected_devices(tree, dedupe_by_mac) # Return list of ConnectedDevice
    signal_percent(dbm)                         # Convert Wi-Fi dBm to 0-100 %
    normalize_mac(mac)                          # Canonical MAC for comparisons
"""
import logging
import math
import re
from typing import Any, Iterable, List, Optional

from pyfibernet.acs.models import (Bandwidth, ConnectedDevice, ConnectionType, DeviceInfo,
                                   OpticalPower)
from pyfibernet.acs.tree import extract, iter_children, parse_timestamp

log = logging.getLogger(__name__)

HOSTS_PATH = 'Device.Hosts.Host'
ASSOCIATED_DEVICE_PATH = 'Device.WiFi.AccessPoint.{ap}.AssociatedDevice'
ACCESS_POINTS = (1, 2)

# Candidate paths per field - first one present wins (firmware dependent)
DEVICE_INFO_PATHS = {
    'manufacturer': ('DeviceID.Manufacturer', '_deviceId._Manufacturer',
                     'Device.DeviceInfo.Manufacturer', 'InternetGatewayDevice.DeviceInfo.Manufacturer'),
    'model': ('DeviceID.ModelName', '_deviceId._ProductClass',
              'Device.DeviceInfo.ModelName', 'InternetGatewayDevice.DeviceInfo.ModelName'),
    'serial_number': ('DeviceID.SerialNumber', '_deviceId._SerialNumber',
                      'Device.DeviceInfo.SerialNumber', 'InternetGatewayDevice.DeviceInfo.SerialNumber'),
    'firmware_version': ('DeviceID.SoftwareVersion', 'Device.DeviceInfo.SoftwareVersion',
                         'InternetGatewayDevice.DeviceInfo.SoftwareVersion'),
    'uptime_seconds': ('Device.DeviceInfo.UpTime', 'InternetGatewayDevice.DeviceInfo.UpTime'),
    'temperature_celsius': ('Device.DeviceInfo.Temperature',
                            'Device.DeviceInfo.TemperatureStatus.TemperatureSensor.1.Value'),
    'rx_dbm': ('Device.Optical.Interface.1.OpticalSignalLevel',),
    'tx_dbm': ('Device.Optical.Interface.1.TransmitOpticalLevel',),
    'last_inform': ('_lastInform',),
}

_FLOAT_RE = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_INT_RE = re.compile(r'^\s*([+-]?\d+)')


def _to_float(value: Any) -> Optional[float]:
    # Leading-number parse: "-18.5 dBm" -> -18.5
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        match = _FLOAT_RE.match(str(value))
        if not match:
            return None
        result = float(match.group(1))
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, int):
        return value
    match = _INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def _to_str(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return str(value)


def _first(tree: Any, paths: Iterable[str]) -> Any:
    for path in paths:
        value = extract(tree, path)
        if value is not None and value != "":
            return value
    return None


def normalize_mac(mac: Any) -> str:
    if mac is None:
        return ""
    return re.sub(r'[^0-9a-f]', '', str(mac).lower())


def signal_percent(dbm: Any) -> Optional[int]:
    """
    Convert a Wi-Fi signal level in dBm to a percentage.

    -30 dBm or better is 100%, -90 dBm or worse is 0%, linear in between.
    Rounds half up so that results match the mobile app.
    """
    value = _to_float(dbm)
    if value is None:
        return None
    if value >= -30:
        return 100
    if value <= -90:
        return 0
    return int(math.floor(((value + 90) / 60) * 100 + 0.5))


def build_device_info(tree: Any, device_key: str) -> DeviceInfo:
    paths = DEVICE_INFO_PATHS
    temperature = _to_float(_first(tree, paths['temperature_celsius']))
    info = DeviceInfo(
        device_key=device_key,
        manufacturer=_to_str(_first(tree, paths['manufacturer']), "Huawei"),
        model=_to_str(_first(tree, paths['model']), "Unknown"),
        serial_number=_to_str(_first(tree, paths['serial_number']), device_key),
        firmware_version=_to_str(_first(tree, paths['firmware_version']), "Unknown"),
        uptime_seconds=_to_int(_first(tree, paths['uptime_seconds'])) or 0,
        temperature_celsius=temperature,
        optical_power=OpticalPower(
            rx_dbm=_to_float(_first(tree, paths['rx_dbm'])) or 0.0,
            tx_dbm=_to_float(_first(tree, paths['tx_dbm'])) or 0.0,
        ),
        last_inform=parse_timestamp(_first(tree, paths['last_inform'])),
    )
    log.debug(f"Device info for {device_key}: {info}")
    return info


def _is_active(value: Any) -> bool:
    # xsd:boolean may arrive as True, "true", 1 or "1" depending on firmware
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1')
    return False


def _wired_devices(tree: Any) -> List[ConnectedDevice]:
    devices = []
    for host_id, host in iter_children(tree, HOSTS_PATH):
        if not _is_active(extract(host, 'Active')):
            continue
        devices.append(ConnectedDevice(
            id=host_id,
            display_name=_to_str(extract(host, 'HostName'), f"Device-{host_id}"),
            ip_address=_to_str(extract(host, 'IPAddress'), ""),
            mac_address=_to_str(extract(host, 'PhysAddress'), ""),
            connection_type=ConnectionType.ETHERNET,
            connected=True,
            manufacturer=_to_str(extract(host, 'Manufacturer'), "") or None,
        ))
    return devices


def _wireless_devices(tree: Any) -> List[ConnectedDevice]:
    devices = []
    for ap in ACCESS_POINTS:
        for wifi_id, entry in iter_children(tree, ASSOCIATED_DEVICE_PATH.format(ap=ap)):
            mac = extract(entry, 'MACAddress')
            if not mac:
                continue
            download = _to_float(extract(entry, 'LastDataDownlinkRate'))
            upload = _to_float(extract(entry, 'LastDataUplinkRate'))
            devices.append(ConnectedDevice(
                id=f"wifi-{ap}-{wifi_id}",
                display_name=_to_str(extract(entry, 'HostName'), f"WiFi-Device-{wifi_id}"),
                ip_address=_to_str(extract(entry, 'IPAddress'), ""),
                mac_address=str(mac),
                connection_type=ConnectionType.WIFI,
                connected=True,
                signal_percent=signal_percent(extract(entry, 'SignalStrength')),
                bandwidth=Bandwidth(
                    download_mbps=(download or 0.0) / 1000,
                    upload_mbps=(upload or 0.0) / 1000,
                ),
            ))
    return devices


def build_connected_devices(tree: Any, dedupe_by_mac: bool = False) -> List[ConnectedDevice]:
    """
    Wired hosts followed by wireless clients of access points 1 and 2.

    With dedupe_by_mac the first record seen for a MAC address is kept, so a
    wired entry wins over a (possibly stale) Wi-Fi association and AP 1 wins
    over AP 2. Entries without a MAC are always kept.
    """
    devices = _wired_devices(tree) + _wireless_devices(tree)
    if not dedupe_by_mac:
        return devices
    seen = set()
    result = []
    for device in devices:
        key = normalize_mac(device.mac_address)
        if key and key in seen:
            log.debug(f"Dropping duplicate {device.connection_type.value} record {device.id} for {device.mac_address}")
            continue
        if key:
            seen.add(key)
        result.append(device)
    return result
