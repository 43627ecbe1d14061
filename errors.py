class FrontDeskError(ValueError):
    """Base class for errors raised by the front desk services."""


class InvalidInput(FrontDeskError):
    """Input rejected before any booking, customer or room was touched."""
