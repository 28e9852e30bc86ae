class StackscopeError(Exception):
    """Base class for every error raised by stackscope."""


class ProfileImportError(StackscopeError):
    """Raised when raw input cannot be turned into a profile."""


class UnrecognizedFormatError(ProfileImportError):
    """No filename rule, shape rule or content heuristic matched the input."""


class MalformedProfileError(ProfileImportError):
    """The input was recognized but its importer could not decode it."""


class ProfileInvariantError(StackscopeError):
    """A derived view violates a structural invariant of the profile."""
