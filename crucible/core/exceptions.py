"""
Unified exception definitions
"""


class CrucibleError(Exception):
    """Base exception class"""
    pass


class ConfigError(CrucibleError):
    """Configuration error"""
    pass


class ValidationError(CrucibleError, ValueError):
    """Required attribute missing at construction time"""
    pass


class ActionFailed(CrucibleError):
    """A lifecycle action could not be completed"""
    pass


class ShellCommandFailed(ActionFailed):
    """Local shell out exited non-zero"""
    pass
