class ConfigurationError(ValueError):
    """Raised when Lyapunov options or dispatch arguments are inconsistent."""

    def __init__(self, message: str):
        super().__init__(message)


__all__ = [
    "ConfigurationError",
]
