# errors.py


class ValidationError(ValueError):
    """Raised when simulation input is rejected before any step runs."""
