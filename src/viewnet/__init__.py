"""ViewNet: concurrent subnet scanner with service and vendor fingerprinting."""

from __future__ import annotations

__version__ = "1.0.0"

import importlib
from types import ModuleType
from typing import Dict

# Map exported attribute -> submodule containing the attribute
_ATTR_MODULES = {
    # data model
    "HostInfo": "models",
    "ServiceInfo": "models",
    "ScanProgress": "models",
    "ScanPhase": "models",
    # errors
    "ViewNetError": "errors",
    "ConfigurationError": "errors",
    "ProbeError": "errors",
    # enumeration and ports
    "expand_subnet": "hosts",
    "detect_local_subnet": "hosts",
    "sort_hosts_by_ip": "hosts",
    "parse_port_list": "ports",
    "COMMON_PORTS": "ports",
    # probing
    "probe_port": "probe",
    "probe_reachability": "reachability",
    # orchestration
    "Scanner": "scanner",
    "CancelToken": "cancel",
    "ScanState": "state",
    "VendorResolver": "vendor",
    # collaborators
    "export_csv": "export",
    "filter_hosts": "search",
}

__all__ = sorted(_ATTR_MODULES) + ["__version__"]

_loaded: Dict[str, ModuleType] = {}


def __getattr__(name: str) -> object:
    module_name = _ATTR_MODULES.get(name)
    if module_name is None:
        raise AttributeError(name)
    module = _loaded.get(module_name)
    if module is None:
        module = importlib.import_module(f".{module_name}", __name__)
        _loaded[module_name] = module
    value = getattr(module, name)
    globals()[name] = value
    return value
