"""
vPLC Collector Exceptions

Custom exception classes for vPLC metrics collection.

Author: uldyssian-sh
License: MIT
"""

from typing import Optional


class VPLCCollectorError(Exception):
    """Base exception for vPLC Collector"""
    pass


class ConfigurationError(VPLCCollectorError):
    """Raised when the device list or collector settings are invalid"""
    pass


class VPLCAuthenticationError(VPLCCollectorError):
    """Raised when a vPLC rejects the login or the session token"""
    pass


class VPLCConnectionError(VPLCCollectorError):
    """Raised when a vPLC request fails at the transport level"""
    pass


class PayloadParseError(VPLCCollectorError):
    """Raised when a vPLC response body cannot be interpreted"""
    pass


class CollectionFault(VPLCCollectorError):
    """Raised for unexpected failures inside a collection cycle"""

    def __init__(self, instance: str, cause: Optional[BaseException] = None):
        self.instance = instance
        self.cause = cause
        message = f"Collection cycle failed for vplc {instance}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
