# pyFiberNet Module - Remote Command Gateway
# -*- coding: utf-8 -*-
"""
 Read device telemetry from and submit tasks to a GenieACS NBI server

 Class
    RemoteCommandGateway(base_url, username, password, timeout, poolmaxsize,
        dedupe_by_mac, session)

 Functions
    get_device(device_key)                      # Raw parameter tree (dict)
    get_info(device_key)                        # DeviceInfo
    get_connected_devices(device_key)           # List of ConnectedDevice
    get_parameters(device_key, paths)           # Dict of path -> value (present paths only)
    list_devices(query, projection)             # List of raw device documents
    reboot(device_key)                          # CommandAccepted
    refresh(device_key, object_name)            # CommandAccepted
    set_parameter(device_key, path, value)      # CommandAccepted
    toggle_block(device_key, mac_address, block) # CommandAccepted
    upgrade_firmware(device_key, firmware_url)  # CommandAccepted

 Notes
    Commands are submit-and-acknowledge: a CommandAccepted only means the
    ACS took the task (HTTP 200 = handed to the device, 202 = queued until
    the next inform). Nothing here waits for, or verifies, the effect.
    Failures raise RemoteManagementError and are not retried.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

import requests
from requests import Response

from pyfibernet.acs.models import CommandAccepted, ConnectedDevice, DeviceInfo
from pyfibernet.acs.normalizer import (ACCESS_POINTS, ASSOCIATED_DEVICE_PATH, build_connected_devices,
                                       build_device_info, normalize_mac)
from pyfibernet.acs.tree import extract, iter_children
from pyfibernet.exceptions import DeviceNotFound, RemoteManagementError

log = logging.getLogger(__name__)

BLOCK_PARAMETER = ASSOCIATED_DEVICE_PATH + '.{index}.Block'


class RemoteCommandGateway:
    def __init__(self, base_url: str, username: Optional[str] = None, password: Optional[str] = None,
                 timeout: Union[int, Tuple[int, int]] = 10, poolmaxsize: int = 10, dedupe_by_mac: bool = False,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or "").rstrip('/')
        self.timeout = timeout
        self.dedupe_by_mac = dedupe_by_mac
        if session is None:
            session = requests.Session()
            if poolmaxsize > 0:
                # noinspection PyUnresolvedReferences
                adapter = requests.adapters.HTTPAdapter(pool_maxsize=poolmaxsize)
                session.mount('http://', adapter)
                session.mount('https://', adapter)
        if username and password:
            session.auth = (username, password)
        self.session = session

    def close_session(self):
        self.session.close()

    # HTTP

    def _request(self, method: str, path: str, **kwargs) -> Response:
        url = f"{self.base_url}{path}"
        log.debug(f" -- acs: {method} {url}")
        try:
            r: Response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            raise RemoteManagementError(f"Timeout waiting for ACS at {url}")
        except requests.exceptions.ConnectionError as exc:
            raise RemoteManagementError(f"Unable to connect to ACS at {url}: {exc}")
        except requests.exceptions.RequestException as exc:
            raise RemoteManagementError(f"Request to ACS at {url} failed: {exc}")
        if r.status_code in (401, 403):
            log.error(f"{r.status_code} Unauthorized by ACS at {url} - check credentials")
            raise RemoteManagementError(f"ACS rejected credentials ({r.status_code})", r.status_code)
        return r

    @staticmethod
    def _json(r: Response, url_hint: str) -> Any:
        try:
            return r.json()
        except ValueError as exc:
            raise RemoteManagementError(f"Unable to parse ACS response for {url_hint} as JSON: {exc}",
                                        r.status_code)

    def _submit(self, device_key: str, task: Dict[str, Any]) -> CommandAccepted:
        path = f"/devices/{quote(device_key, safe='')}/tasks?connection_request"
        r = self._request('POST', path, json=task)
        if r.status_code == 404:
            raise DeviceNotFound(f"Device {device_key} not found on ACS")
        if r.status_code not in (200, 202):
            raise RemoteManagementError(f"ACS refused task '{task['name']}' for {device_key}: "
                                        f"{r.status_code} {r.text}", r.status_code)
        task_id = None
        try:
            body = r.json()
            if isinstance(body, dict):
                task_id = str(body['_id']) if body.get('_id') is not None else None
        except ValueError:
            log.debug(f"Task response for {device_key} is not JSON - continuing")
        queued = r.status_code == 202
        log.info(f"Task '{task['name']}' accepted for {device_key}{' (queued)' if queued else ''}")
        return CommandAccepted(device_key=device_key, task=task['name'], task_id=task_id, queued=queued)

    # Read path

    def list_devices(self, query: Optional[dict] = None, projection: Optional[Sequence[str]] = None) -> List[dict]:
        params = {}
        if query:
            params['query'] = json.dumps(query)
        if projection:
            params['projection'] = ','.join(projection)
        r = self._request('GET', '/devices/', params=params)
        if r.status_code != 200:
            raise RemoteManagementError(f"Unable to list devices: {r.status_code}", r.status_code)
        devices = self._json(r, '/devices/')
        if not isinstance(devices, list):
            raise RemoteManagementError("Unexpected device listing from ACS", r.status_code)
        return devices

    def get_device(self, device_key: str) -> dict:
        devices = self.list_devices(query={'_id': device_key})
        if not devices or not isinstance(devices[0], dict):
            raise DeviceNotFound(f"Device {device_key} not found on ACS")
        return devices[0]

    def get_info(self, device_key: str) -> DeviceInfo:
        return build_device_info(self.get_device(device_key), device_key)

    def get_connected_devices(self, device_key: str) -> List[ConnectedDevice]:
        return build_connected_devices(self.get_device(device_key), dedupe_by_mac=self.dedupe_by_mac)

    def get_parameters(self, device_key: str, paths: Sequence[str]) -> Dict[str, Any]:
        tree = self.get_device(device_key)
        result = {}
        for path in paths:
            value = extract(tree, path)
            if value is not None:
                result[path] = value
        return result

    # Write path

    def reboot(self, device_key: str) -> CommandAccepted:
        return self._submit(device_key, {'name': 'reboot'})

    def refresh(self, device_key: str, object_name: str = 'Device.') -> CommandAccepted:
        return self._submit(device_key, {'name': 'refreshObject', 'objectName': object_name})

    def set_parameter(self, device_key: str, path: str, value: Any,
                      value_type: str = 'xsd:string') -> CommandAccepted:
        return self._submit(device_key, {'name': 'setParameterValues',
                                         'parameterValues': [[path, value, value_type]]})

    def upgrade_firmware(self, device_key: str, firmware_url: str) -> CommandAccepted:
        return self._submit(device_key, {'name': 'download', 'fileType': '1 Firmware Upgrade Image',
                                         'url': firmware_url})

    def locate_wifi_client(self, tree: Any, mac_address: str) -> Optional[Tuple[int, str]]:
        """Return (access point, index) of the associated device with this MAC."""
        wanted = normalize_mac(mac_address)
        if not wanted:
            return None
        for ap in ACCESS_POINTS:
            for index, entry in iter_children(tree, ASSOCIATED_DEVICE_PATH.format(ap=ap)):
                if normalize_mac(extract(entry, 'MACAddress')) == wanted:
                    return ap, index
        return None

    def toggle_block(self, device_key: str, mac_address: str, block: bool) -> CommandAccepted:
        # Block is addressed by structural index, which only a fresh read can tell
        tree = self.get_device(device_key)
        location = self.locate_wifi_client(tree, mac_address)
        if location is None:
            raise DeviceNotFound(f"No Wi-Fi client with MAC {mac_address} on {device_key}")
        ap, index = location
        parameter = BLOCK_PARAMETER.format(ap=ap, index=index)
        log.debug(f"{'Blocking' if block else 'Unblocking'} {mac_address} via {parameter}")
        return self.set_parameter(device_key, parameter, 'true' if block else 'false')
