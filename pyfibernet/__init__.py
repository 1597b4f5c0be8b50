# pyFiberNet Module
# -*- coding: utf-8 -*-
"""
 Python module for the FiberNet support backend: third-party service status
 and customer ONT telemetry/commands

 Features
    * Caches third-party outage status per service (5 min TTL by default)
    * Only one refresh per service in flight; concurrent readers share its result
    * Falls back to an AI classifier when the status page is blocked or unreadable
    * Background scheduler keeps the status cache warm (every 15 min by default)
    * Normalizes GenieACS parameter trees into DeviceInfo / ConnectedDevice objects
    * Submit-and-acknowledge device commands (reboot, refresh, set parameter, block)

 Classes
    FiberNet(settings, orchestrator, gateway)

 Functions
    get_status(service_key, jsonformat)             # ServiceStatus of a tracked service
    get_instabilities(refresh, jsonformat)          # List of degraded services
    detect_service(text)                            # Tracked service key mentioned in text
    status_message(service_key)                     # Chat-ready status message
    get_device_info(device_key, jsonformat)         # DeviceInfo of an ONT
    get_connected_devices(device_key, jsonformat)   # List of ConnectedDevice
    diagnose_device(device_key, jsonformat)         # Diagnosis of an ONT
    reboot_device(device_key)                       # CommandAccepted
    refresh_device(device_key)                      # CommandAccepted
    set_parameter(device_key, path, value)          # CommandAccepted
    toggle_device_block(device_key, mac, block)     # CommandAccepted
    start(interval) / stop()                        # Background status refresh

 Requirements
    This module requires the following modules: requests, beautifulsoup4, pydantic,
    pydantic-settings, python-dateutil, python-dotenv
"""
import json
import logging
import sys
from typing import List, Optional, Union

version_tuple = (0, 3, 0)
version = __version__ = '%d.%d.%d' % version_tuple
__author__ = 'fibernet'

from pyfibernet.acs.diagnostics import diagnose
from pyfibernet.acs.gateway import RemoteCommandGateway
from pyfibernet.acs.models import CommandAccepted, ConnectedDevice, DeviceInfo, Diagnosis
from pyfibernet.config import Settings, load_settings
from pyfibernet.exceptions import (DeviceNotFound, FiberNetError, InvalidConfigurationParameter,
                                   RemoteManagementError, UntrackedServiceError)
from pyfibernet.status.fallback import AIFallbackClassifier
from pyfibernet.status.messages import detect_service, format_status_message
from pyfibernet.status.models import ServiceStatus, StatusState
from pyfibernet.status.orchestrator import StatusOrchestrator
from pyfibernet.status.scheduler import StatusScheduler
from pyfibernet.status.source import StatusSourceClient

log = logging.getLogger(__name__)
log.debug('%s version %s', __name__, __version__)
log.debug('Python %s on %s', sys.version, sys.platform)


def set_debug(toggle=True, color=True):
    """Enable verbose logging"""
    if toggle:
        if color:
            logging.basicConfig(format='\x1b[31;1m%(levelname)s:%(message)s\x1b[0m', level=logging.DEBUG)
        else:
            logging.basicConfig(format='%(levelname)s:%(message)s', level=logging.DEBUG)
        log.setLevel(logging.DEBUG)
        log.debug("%s [%s]\n" % (__name__, __version__))
    else:
        log.setLevel(logging.NOTSET)


def _dump(value, jsonformat: bool):
    if not jsonformat:
        return value
    if isinstance(value, list):
        return json.dumps([v.to_dict() for v in value], indent=4)
    return json.dumps(value.to_dict(), indent=4)


class FiberNet(object):
    def __init__(self, settings: Optional[Settings] = None, orchestrator: Optional[StatusOrchestrator] = None,
                 gateway: Optional[RemoteCommandGateway] = None):
        """
        Status and device-management core of the FiberNet backend.

        Args:
            settings     = Settings (default: load_settings() from the environment)
            orchestrator = Prebuilt StatusOrchestrator (default: built from settings)
            gateway      = Prebuilt RemoteCommandGateway (default: built from settings)
        """
        self.settings = settings if settings is not None else load_settings()
        if self.settings.debug:
            set_debug(True)
        self.orchestrator = orchestrator if orchestrator is not None else self._build_orchestrator()
        self.gateway = gateway if gateway is not None else self._build_gateway()
        self.scheduler = StatusScheduler(self.orchestrator)

    def _build_orchestrator(self) -> StatusOrchestrator:
        s = self.settings
        source = StatusSourceClient(url_template=s.status_url, timeout=s.status_timeout,
                                    poolmaxsize=s.pool_maxsize, reports_api_key=s.reports_api_key,
                                    reports_api_url=s.reports_api_url)
        fallback = AIFallbackClassifier(api_key=s.gemini_api_key, model=s.ai_model, timeout=s.ai_timeout,
                                        cache_ttl=s.status_ttl, poolmaxsize=s.pool_maxsize)
        if not fallback.available():
            log.debug("GEMINI_API_KEY not set - AI fallback will answer unknown")
        return StatusOrchestrator(s.services, source, fallback, ttl=s.status_ttl,
                                  wait_timeout=s.status_timeout + s.ai_timeout + 5)

    def _build_gateway(self) -> RemoteCommandGateway:
        s = self.settings
        return RemoteCommandGateway(s.acs_url, s.acs_username, s.acs_password, timeout=s.acs_timeout,
                                    poolmaxsize=s.pool_maxsize, dedupe_by_mac=s.dedupe_by_mac)

    # Scheduler

    def start(self, interval: Optional[int] = None, wait: bool = True) -> bool:
        """Start background status refresh; populates the cache before returning when wait is True."""
        return self.scheduler.start(interval or self.settings.refresh_interval, wait=wait)

    def stop(self):
        self.scheduler.stop()

    def close(self):
        self.stop()
        self.orchestrator.close()
        self.gateway.close_session()

    # Service status

    def get_status(self, service_key: str, jsonformat=False) -> Union[ServiceStatus, str]:
        """
        Status of a tracked service

        Args:
            service_key = Tracked service key (e.g. 'netflix')
            jsonformat  = If True, return JSON format otherwise return ServiceStatus
        """
        return _dump(self.orchestrator.get_status(service_key), jsonformat)

    def get_instabilities(self, refresh=False, jsonformat=False) -> Union[List[ServiceStatus], str]:
        return _dump(self.orchestrator.get_instabilities(refresh=refresh), jsonformat)

    def detect_service(self, text: str) -> Optional[str]:
        return detect_service(text, self.orchestrator.tracked_services)

    def status_message(self, service_key: str) -> str:
        return format_status_message(self.orchestrator.get_status(service_key), self.settings.status_url)

    # Devices

    def get_device_info(self, device_key: str, jsonformat=False) -> Union[DeviceInfo, str]:
        return _dump(self.gateway.get_info(device_key), jsonformat)

    def get_connected_devices(self, device_key: str, jsonformat=False) -> Union[List[ConnectedDevice], str]:
        return _dump(self.gateway.get_connected_devices(device_key), jsonformat)

    def diagnose_device(self, device_key: str, jsonformat=False) -> Union[Diagnosis, str]:
        return _dump(diagnose(self.gateway.get_info(device_key)), jsonformat)

    def reboot_device(self, device_key: str) -> CommandAccepted:
        return self.gateway.reboot(device_key)

    def refresh_device(self, device_key: str) -> CommandAccepted:
        return self.gateway.refresh(device_key)

    def set_parameter(self, device_key: str, path: str, value, value_type: str = 'xsd:string') -> CommandAccepted:
        return self.gateway.set_parameter(device_key, path, value, value_type)

    def toggle_device_block(self, device_key: str, mac_address: str, block: bool) -> CommandAccepted:
        return self.gateway.toggle_block(device_key, mac_address, block)
