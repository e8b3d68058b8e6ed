"""Error taxonomy for listing generation and staging."""


class ListingStudioError(Exception):
    """Base class for listing studio errors."""


class ValidationFailure(ListingStudioError):
    """A submission violates the pipeline's entry invariants."""


class GenerationFailure(ListingStudioError):
    """A listing or description generation call did not yield a valid result."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class StagingFailure(ListingStudioError):
    """A single photo enhancement did not yield an image."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NoActiveListing(ListingStudioError):
    """An action needs a generated listing but the session is empty."""


class UnknownPhotos(ListingStudioError):
    """Staging was requested for photos that are not part of the listing."""

    def __init__(self, names: list[str]) -> None:
        super().__init__(f"Unknown photos: {', '.join(names)}")
        self.names = names
