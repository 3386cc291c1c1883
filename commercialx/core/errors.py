"""
Exception types raised by CommercialX services.

The reconciliation core never raises for bad provider data; these are for
the provider clients, the wizard and the API layer.
"""


class CommercialXError(RuntimeError):
    """Base class for CommercialX errors."""


class InvalidVINError(CommercialXError, ValueError):
    """Raised when a VIN fails the 17-character / no I, O, Q format check."""


class VINDecodeError(CommercialXError):
    """Raised when the VIN cannot be decoded into usable vehicle data."""


class WizardStateError(CommercialXError):
    """Raised when a wizard operation is not allowed in its current state."""
