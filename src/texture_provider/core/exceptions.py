"""Custom exceptions for the texture provider."""


class TextureProviderError(Exception):
    """Base class for exceptions raised by the texture provider."""

    pass


class NotFoundError(TextureProviderError, LookupError):
    """Raised when a key is absent at the source that was asked for it."""

    pass


class BackendUnavailableError(TextureProviderError):
    """Raised when a storage backend or remote service cannot be consulted."""

    def __init__(
        self,
        message: str,
        backend: str,
        original_exception: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.original_exception = original_exception

    def __str__(self) -> str:
        base_str = super().__str__()
        details = f"Backend: {self.backend}"
        if self.original_exception:
            details += f", Original Error: {type(self.original_exception).__name__}: {self.original_exception}"
        return f"{base_str} ({details})"


class MalformedPayloadError(TextureProviderError):
    """Raised when an external payload cannot be parsed."""

    pass


class MisconfiguredError(TextureProviderError):
    """Raised at startup when mandatory configuration is missing."""

    pass


class InvalidTextureError(TextureProviderError, ValueError):
    """Raised when uploaded bytes are not a PNG image."""

    pass
