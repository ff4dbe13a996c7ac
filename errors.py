"""
Error types shared by the simulation modules
"""


class ConfigurationError(ValueError):
    """A run was requested with parameters it cannot start from."""
