"""Custom exceptions for VPN connection control."""


class VPNError(Exception):
    """Base exception for connection-control errors."""
    pass


class ConfigurationError(VPNError):
    """Raised when the tunnel cannot be configured from the active settings"""
    pass


class InterfaceError(VPNError):
    """Raised when the tunnel interface does not come up"""
    pass


class ConnectionError(VPNError):
    """Raised when tearing down or re-establishing the VPN fails"""
    pass
