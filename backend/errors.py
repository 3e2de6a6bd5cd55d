class PricingError(Exception):
    """
    Base class for calculation failures that should reach the client as a 4xx.

    Carries a human-readable message plus a list of details naming exactly what
    was invalid (variant ids, conflicting product ids, field errors).
    """
    status_code = 400

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class InvalidInput(PricingError):
    status_code = 400


class Conflict(PricingError):
    status_code = 409
