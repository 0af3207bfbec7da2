"""Errors raised while turning a bundle into a ServerConfig."""

from pydantic import ValidationError


class BundleError(Exception):
    """Base class for bundle processing failures."""


class BundleFormatError(BundleError):
    """Payload cannot be decoded as the detected bundle format."""


class BundleValidationError(BundleError):
    """Payload decoded, but required content is missing or invalid."""


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
