"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ConfigurationError(DomainException):
    """Threshold, timezone or credentials are missing or invalid"""

    pass


class InvoiceStoreError(DomainException):
    """Remote invoice store returned an error or is unavailable"""

    pass


class InvoiceSelectionError(InvoiceStoreError):
    """Listing candidate invoices failed, the current tick is aborted"""

    pass


class TickInProgressError(DomainException):
    """An evaluation tick is already running"""

    pass
