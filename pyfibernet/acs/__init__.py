from pyfibernet.acs.gateway import RemoteCommandGateway
from pyfibernet.acs.models import (Bandwidth, CommandAccepted, ConnectedDevice, ConnectionType, DeviceInfo,
                                   Diagnosis, OpticalPower)
from pyfibernet.acs.normalizer import build_connected_devices, build_device_info, signal_percent
from pyfibernet.acs.tree import MISSING, Leaf, Node, extract, resolve
from pyfibernet.acs.diagnostics import diagnose
