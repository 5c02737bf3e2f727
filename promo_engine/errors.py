
class PricingError(Exception):
    """Base class for failures raised by the pricing engine"""


class EmptyCartError(PricingError):
    """No selected lines to price; checkout must not place an order"""

    def __init__(self, message: str = "No items selected for checkout"):
        super().__init__(message)


class PricingInvariantError(PricingError):
    """A discount or total broke an arithmetic invariant. Indicates a bug in rule composition."""
