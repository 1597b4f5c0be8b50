import json
from unittest.mock import MagicMock

import pytest

import pyfibernet
from pyfibernet import FiberNet
from pyfibernet.acs.models import CommandAccepted, DeviceInfo, OpticalPower
from pyfibernet.config import load_settings
from pyfibernet.status.fallback import AIFallbackClassifier
from pyfibernet.status.models import RawState, RawStatusResult, TrackedService
from pyfibernet.status.orchestrator import StatusOrchestrator
from pyfibernet.status.source import StatusSourceClient


@pytest.fixture
def settings(monkeypatch):
    for name in ("FN_SERVICES", "GEMINI_API_KEY", "FN_DEBUG", "FN_STATUS_URL"):
        monkeypatch.delenv(name, raising=False)
    return load_settings()


@pytest.fixture
def source():
    source = MagicMock()
    source.fetch_status.return_value = RawStatusResult(state=RawState.DEGRADED, indicator_text="problemas",
                                                       source_label="downdetector")
    return source


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.get_info.return_value = DeviceInfo(device_key="dev", uptime_seconds=100,
                                               optical_power=OpticalPower(rx_dbm=-29.0, tx_dbm=2.0))
    gateway.reboot.return_value = CommandAccepted(device_key="dev", task="reboot", queued=True)
    return gateway


@pytest.fixture
def fn(settings, source, gateway):
    orchestrator = StatusOrchestrator([TrackedService(key="netflix", name="Netflix", aliases=["net"])], source)
    fn = FiberNet(settings, orchestrator=orchestrator, gateway=gateway)
    yield fn
    fn.close()


def test_version():
    assert pyfibernet.__version__ == "%d.%d.%d" % pyfibernet.version_tuple


def test_default_wiring(settings):
    fn = FiberNet(settings)
    assert isinstance(fn.orchestrator.source, StatusSourceClient)
    assert isinstance(fn.orchestrator.fallback, AIFallbackClassifier)
    assert fn.orchestrator.fallback.available() is False
    assert fn.orchestrator.cache.ttl == settings.status_ttl
    assert fn.gateway.base_url == settings.acs_url
    fn.close()


def test_get_status(fn):
    status = fn.get_status("netflix")
    assert status.degraded
    data = json.loads(fn.get_status("netflix", jsonformat=True))
    assert data["service_key"] == "netflix"
    assert data["state"] == "minor"
    assert data["degraded"] is True


def test_get_instabilities_json(fn):
    data = json.loads(fn.get_instabilities(refresh=True, jsonformat=True))
    assert [s["display_name"] for s in data] == ["Netflix"]


def test_detect_service_and_message(fn):
    assert fn.detect_service("a net caiu de novo") == "netflix"
    assert "Instabilidade Leve" in fn.status_message("netflix")


def test_untracked_service(fn):
    with pytest.raises(pyfibernet.UntrackedServiceError):
        fn.get_status("orkut")


def test_device_operations(fn, gateway):
    assert fn.get_device_info("dev").uptime_seconds == 100
    diagnosis = json.loads(fn.diagnose_device("dev", jsonformat=True))
    assert diagnosis["connection_status"] == "Unstable"
    assert diagnosis["reboot_recommended"] is True
    assert fn.reboot_device("dev").queued is True
    gateway.reboot.assert_called_once_with("dev")


def test_command_passthrough(fn, gateway):
    fn.toggle_device_block("dev", "aa:bb:cc:dd:ee:ff", True)
    gateway.toggle_block.assert_called_once_with("dev", "aa:bb:cc:dd:ee:ff", True)
    fn.set_parameter("dev", "Device.WiFi.SSID.1.SSID", "Casa")
    gateway.set_parameter.assert_called_once_with("dev", "Device.WiFi.SSID.1.SSID", "Casa", "xsd:string")
    fn.refresh_device("dev")
    gateway.refresh.assert_called_once_with("dev")


def test_start_warms_cache(fn, source):
    assert fn.start(interval=3600) is True
    assert fn.orchestrator.get_cached("netflix").degraded
    fn.stop()
    assert source.fetch_status.call_count == 1
