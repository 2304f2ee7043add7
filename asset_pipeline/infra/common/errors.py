"""Centralized error types."""


class PipelineError(Exception):
    """Base exception for asset pipeline errors."""
    pass


class ConfigError(PipelineError):
    """Configuration error."""
    pass


class StorageError(PipelineError):
    """Output or manifest storage error."""
    pass


class FileNotFound(PipelineError):
    """Directive argument or asset name could not be resolved inside the load paths."""
    pass


class ContentTypeMismatch(PipelineError):
    """Dependency content type differs from the asset that required it."""
    pass


class ArgumentError(PipelineError):
    """Directive used with an argument that is invalid for its kind."""
    pass


class EncodingError(PipelineError):
    """Text asset is not valid UTF-8."""
    pass
