# Example: pyFiberNet Usage Demo
# ------------------------------
# This script demonstrates the status cache and the ONT telemetry helpers of
# the pyFiberNet library.
#
# Usage:
#   - Set your settings in the environment or in a .env file, for example:
#       FN_ACS_URL, FN_ACS_USERNAME, FN_ACS_PASSWORD, GEMINI_API_KEY, FN_DEVICE_KEY
#   - Run: python example.py

import os

import dotenv

import pyfibernet

# Load environment variables from .env file if present
dotenv.load_dotenv()

# Enable debug logging for more verbose output (optional for learning)
# pyfibernet.set_debug(True)

fn = pyfibernet.FiberNet()

# --- Service Status ---
# First refresh runs before start() returns so the cache is warm
fn.start(wait=True)
print("Tracked services:")
for key, status in fn.orchestrator.snapshot().items():
    print(f"  {status.display_name:<20} {status.state.value:<12} via {status.source_label}")

problems = fn.get_instabilities()
print(f"\n{len(problems)} services with problems\n")

# --- Support Chat ---
question = "o netflix caiu?"
service_key = fn.detect_service(question)
if service_key:
    print(fn.status_message(service_key))
    print("")

# --- Device Telemetry ---
device_key = os.getenv('FN_DEVICE_KEY')
if device_key:
    try:
        info = fn.get_device_info(device_key)
        print("Model: %s - Firmware: %s - Serial: %s" % (info.model, info.firmware_version, info.serial_number))
        print("Uptime: %ds - RX %.2f dBm / TX %.2f dBm" % (info.uptime_seconds, info.optical_power.rx_dbm,
                                                           info.optical_power.tx_dbm))
        print("Diagnosis: %r\n" % fn.diagnose_device(device_key).to_dict())
        for d in fn.get_connected_devices(device_key):
            print(f"  {d.display_name:<24} {d.connection_type.value:<9} {d.ip_address}")
    except pyfibernet.FiberNetError as err:
        print(f"Unable to read device {device_key}: {err}")

fn.close()
