from pyfibernet.acs.diagnostics import diagnose
from pyfibernet.acs.models import DeviceInfo, OpticalPower


def make_info(rx=-18.0, uptime=86400, temperature=45.0):
    return DeviceInfo(device_key="dev", uptime_seconds=uptime, temperature_celsius=temperature,
                      optical_power=OpticalPower(rx_dbm=rx, tx_dbm=2.0))


def test_healthy_device():
    result = diagnose(make_info())
    assert result.connection_status == "Online"
    assert result.reboot_recommended is False
    assert result.issues == []
    assert result.cause == "No critical fault detected."


def test_low_rx_is_unstable():
    result = diagnose(make_info(rx=-28.5))
    assert result.connection_status == "Unstable"
    assert "too low" in result.cause


def test_high_rx_is_unstable():
    result = diagnose(make_info(rx=-5.0))
    assert result.connection_status == "Unstable"
    assert "too high" in result.cause


def test_missing_rx_is_unknown():
    result = diagnose(make_info(rx=0.0))
    assert result.connection_status == "Unknown"


def test_recent_reboot_recommends_reboot():
    result = diagnose(make_info(uptime=600))
    assert result.reboot_recommended is True
    assert result.connection_status == "Online"


def test_hot_device_and_first_issue_is_cause():
    result = diagnose(make_info(rx=-30.0, temperature=75.0))
    assert len(result.issues) == 2
    assert result.cause == result.issues[0]
    assert result.reboot_recommended is True


def test_temperature_not_reported():
    result = diagnose(make_info(temperature=None))
    assert result.issues == []
