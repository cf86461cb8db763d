from typing import Optional


class PersonalizationError(Exception):
    """Base class for every error raised by the personalization engine."""


class FetchError(PersonalizationError):
    """A remote asset could not be retrieved (non-2xx status or network failure)."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"Failed to fetch image {url}: {message}")
        self.url = url
        self.status_code = status_code


class OptionalAssetError(PersonalizationError):
    """
    A branding image (photo / logo) could not be fetched or processed.

    Never surfaces to callers of the engine: the layer is dropped instead.
    """

    def __init__(self, zone: str, message: str) -> None:
        super().__init__(f"Failed to process {zone} zone: {message}")
        self.zone = zone


class InvalidLayoutError(PersonalizationError):
    """The template's layout configuration is structurally invalid."""


class RewriteBackendError(PersonalizationError):
    """The generative text backend failed or returned unusable output."""
