"""Exception types for the resource monitor"""


class ResmonError(Exception):
    """Base class for resource monitor errors"""
    pass


class ConfigError(ResmonError, ValueError):
    """Invalid or inconsistent configuration"""
    pass


class SamplerError(ResmonError):
    """A snapshot could not be produced for this cycle"""
    pass


class SamplerInitError(SamplerError):
    """The sampler could not be initialized at startup"""
    pass
