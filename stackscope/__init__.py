from .conf import ScopeConfig
from .detect import ProfileFormat, detect_format, import_profile, load_profile
from .errors import (
    MalformedProfileError,
    ProfileImportError,
    ProfileInvariantError,
    StackscopeError,
    UnrecognizedFormatError,
)
from .flamechart import Flamechart, build_chronological, build_left_heavy
from .profile import CallEvent, CallEventKind, Frame, Profile, ProfileBuilder
from .session import ProfileBundle, ProfileSession, SortOrder, derive_views

__all__ = [
    "CallEvent",
    "CallEventKind",
    "Flamechart",
    "Frame",
    "MalformedProfileError",
    "Profile",
    "ProfileBuilder",
    "ProfileBundle",
    "ProfileFormat",
    "ProfileImportError",
    "ProfileInvariantError",
    "ProfileSession",
    "ScopeConfig",
    "SortOrder",
    "StackscopeError",
    "UnrecognizedFormatError",
    "build_chronological",
    "build_left_heavy",
    "derive_views",
    "detect_format",
    "import_profile",
    "load_profile",
]
