"""Domain errors raised by the profile service."""


class ProfileError(Exception):
    """Base class for business-rule failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ProfileError):
    """A referenced user does not exist."""

    def __init__(self, resource: str = "User", identifier=None):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found")


class ConflictError(ProfileError):
    """The change would break a uniqueness rule (e.g. a taken username)."""


class InvalidReferenceError(ProfileError):
    """The request points at entities that do not exist (e.g. unknown genres)."""


class InvalidOperationError(ProfileError):
    """The request is well-formed but not allowed (e.g. following yourself)."""
