"""Error taxonomy shared by every layer of mb-opclip."""

from pathlib import Path


class AppError(Exception):
    """Application-level error carrying a machine-readable code."""

    default_code = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize with a human-readable message and an optional code override.

        Args:
            message: Human-readable error description.
            code: Machine-readable error code (defaults to the class ``default_code``).

        """
        super().__init__(message)
        self.code = code or self.default_code


class ConfigError(AppError):
    """Missing or invalid configuration or provisioned secrets."""

    default_code = "config"


class AuthError(AppError):
    """Sign-in rejected by the provider."""

    default_code = "auth_failed"


class DecryptError(AppError):
    """Local ciphertext could not be opened."""

    default_code = "decrypt_failed"

    def __init__(self, message: str, path: Path | None = None, code: str | None = None) -> None:
        """Initialize with the offending path, when known."""
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message, code)
        self.path = path


class ProviderError(AppError):
    """Remote listing or fetch failed."""

    default_code = "provider_failed"


class NotFoundError(AppError):
    """Title or field resolution failed."""

    default_code = "not_found"


class UnsupportedTemplateError(AppError):
    """Item template kind is not recognized."""

    default_code = "unsupported_template"
