# pyFiberNet Module - Command Line
# -*- coding: utf-8 -*-
"""
 Python module for the FiberNet support backend

 Command line interface:
    python -m pyfibernet <command>

 Settings are read from the environment (and from a .env file if present).
"""

import argparse
import sys

from dotenv import load_dotenv

# Modules
from pyfibernet import version, set_debug

load_dotenv()

# Setup parser and groups
p = argparse.ArgumentParser(prog="PyFiberNet", description=f"PyFiberNet Module v{version}")
subparsers = p.add_subparsers(dest="command", title='commands (run <command> -h to see usage information)',
                              required=True)

status_args = subparsers.add_parser("status", help='Show the outage status of tracked services')
status_args.add_argument("-service", type=str, default=None, help="Service key (default: all tracked services)")
status_args.add_argument("-format", type=str, default="text", help="Output format: text, json")

instab_args = subparsers.add_parser("instabilities", help='List tracked services with problems')
instab_args.add_argument("-format", type=str, default="text", help="Output format: text, json")

info_args = subparsers.add_parser("info", help='Show device information of an ONT')
info_args.add_argument("-device", type=str, required=True, help="ACS device key")

devices_args = subparsers.add_parser("devices", help='List hosts connected to an ONT')
devices_args.add_argument("-device", type=str, required=True, help="ACS device key")
devices_args.add_argument("-format", type=str, default="text", help="Output format: text, json")

diagnose_args = subparsers.add_parser("diagnose", help='Run the health check of an ONT')
diagnose_args.add_argument("-device", type=str, required=True, help="ACS device key")

reboot_args = subparsers.add_parser("reboot", help='Submit a reboot task to an ONT')
reboot_args.add_argument("-device", type=str, required=True, help="ACS device key")

refresh_args = subparsers.add_parser("refresh", help='Submit a parameter refresh task to an ONT')
refresh_args.add_argument("-device", type=str, required=True, help="ACS device key")

block_args = subparsers.add_parser("block", help='Block or unblock a Wi-Fi client of an ONT')
block_args.add_argument("-device", type=str, required=True, help="ACS device key")
block_args.add_argument("-mac", type=str, required=True, help="MAC address of the Wi-Fi client")
block_args.add_argument("-unblock", action="store_true", default=False, help="Unblock instead of block")

version_args = subparsers.add_parser("version", help='Print version information')

# Add a global debug flag
p.add_argument("-debug", action="store_true", default=False, help="Enable debug output")

if len(sys.argv) == 1:
    p.print_help(sys.stderr)
    sys.exit(1)

# parse args
args = p.parse_args()
command = args.command

# Set Debug Mode
if args.debug:
    set_debug(True)

if command == 'version':
    print("pyFiberNet [%s]" % version)
    sys.exit(0)

import pyfibernet
from pyfibernet.exceptions import FiberNetError

try:
    fn = pyfibernet.FiberNet()
except FiberNetError as err:
    print(f"ERROR: Invalid configuration - {err}")
    sys.exit(1)

try:
    # Service Status
    if command == 'status':
        if args.service:
            keys = [args.service]
        else:
            keys = [s.key for s in fn.orchestrator.tracked_services]
        if args.format == 'json':
            print("[" + ",\n".join(fn.get_status(key, jsonformat=True) for key in keys) + "]")
        else:
            print(f"pyFiberNet [{version}] - Service Status\n")
            for key in keys:
                s = fn.get_status(key)
                print(f" {s.display_name:<20} {s.state.value:<12} ({s.source_label})")

    elif command == 'instabilities':
        if args.format == 'json':
            print(fn.get_instabilities(refresh=True, jsonformat=True))
        else:
            problems = fn.get_instabilities(refresh=True)
            print(f"pyFiberNet [{version}] - {len(problems)} services with problems\n")
            for s in problems:
                print(f" {s.display_name:<20} {s.state.value}")

    # Devices
    elif command == 'info':
        print(fn.get_device_info(args.device, jsonformat=True))

    elif command == 'devices':
        if args.format == 'json':
            print(fn.get_connected_devices(args.device, jsonformat=True))
        else:
            print(f"pyFiberNet [{version}] - Hosts connected to {args.device}\n")
            for d in fn.get_connected_devices(args.device):
                signal = f"{d.signal_percent}%" if d.signal_percent is not None else "-"
                print(f" {d.display_name:<24} {d.connection_type.value:<9} {d.ip_address:<16} "
                      f"{d.mac_address:<18} {signal}")

    elif command == 'diagnose':
        print(fn.diagnose_device(args.device, jsonformat=True))

    # Commands
    elif command in ('reboot', 'refresh', 'block'):
        if command == 'reboot':
            ack = fn.reboot_device(args.device)
        elif command == 'refresh':
            ack = fn.refresh_device(args.device)
        else:
            ack = fn.toggle_device_block(args.device, args.mac, not args.unblock)
        state = "queued until next inform" if ack.queued else "sent to device"
        print(f"Task '{ack.task}' accepted for {ack.device_key} ({state})")

except FiberNetError as err:
    print(f"ERROR: {err}")
    sys.exit(1)
finally:
    fn.close()
