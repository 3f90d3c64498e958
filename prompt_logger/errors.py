"""Exception types shared across the prompt logger."""


class PromptLoggerError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(PromptLoggerError):
    """Raised when a configuration value cannot be used."""


class TransportError(PromptLoggerError):
    """Raised when a storage transport fails (disk, network, or bad status).

    ``status`` is the HTTP status for the remote transport, ``None`` otherwise;
    ``body`` is the response text that came with it.
    """

    def __init__(self, message, status=None, body=None):
        self.status = status
        self.body = body
        super().__init__(message)


class DirectoryExistsError(TransportError):
    """Raised when asked to create a directory that is already there."""
