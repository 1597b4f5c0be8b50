from typing import Optional


class FiberNetError(Exception):
    pass


class InvalidConfigurationParameter(FiberNetError):
    pass


class UntrackedServiceError(FiberNetError):
    def __init__(self, service_key: str):
        super().__init__(f"Service '{service_key}' is not in the tracked service registry")
        self.service_key = service_key


class SourceUnreachable(FiberNetError):
    """Primary status source could not be read (timeout, block page, non-2xx)"""
    pass


class ClassificationUnavailable(FiberNetError):
    """AI fallback has no credential or the provider call failed"""
    pass


class DeviceNotFound(FiberNetError):
    pass


class RemoteManagementError(FiberNetError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
