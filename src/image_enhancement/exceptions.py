"""
Exceptions raised by the enhancement pipeline
"""


class EnhancementError(Exception):
    """Base class for all pipeline failures"""
    pass


class InvalidBufferError(EnhancementError, ValueError):
    """Pixel buffer does not match its declared width x height x channels"""
    pass


class ConfigError(EnhancementError):
    """Configuration file could not be parsed or holds an unknown value"""
    pass
