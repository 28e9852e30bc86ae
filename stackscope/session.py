"""
Application state around an imported profile.

A ProfileSession holds at most one ProfileBundle, the profile together with
its two precomputed views, and the sort order choosing which view is shown.
Loading a file builds a complete new bundle before replacing the old one, so a
failed import leaves the previous bundle in place.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from stackscope.conf import ScopeConfig
from stackscope.detect import Content, import_profile
from stackscope.errors import ProfileInvariantError
from stackscope.flamechart import Flamechart, build_chronological, build_left_heavy, check_invariants
from stackscope.profile import Profile
from stackscope.tools.enum import EnumManipulator


class SortOrder(Enum):
    """Which view of the profile is active."""

    CHRONOLOGICAL = "chronological"
    LEFT_HEAVY = "left_heavy"

    @classmethod
    def parse(cls, name: Union[str, "SortOrder"]) -> "SortOrder":
        if isinstance(name, cls):
            return name
        return EnumManipulator(cls).require(name)


@dataclass(frozen=True)
class ProfileBundle:
    profile: Profile
    chronological: Flamechart
    left_heavy: Flamechart

    def view(self, order: SortOrder) -> Flamechart:
        if order is SortOrder.LEFT_HEAVY:
            return self.left_heavy
        return self.chronological


def derive_views(profile: Profile, config: Optional[ScopeConfig] = None) -> ProfileBundle:
    """
    Build both views of a profile.

    Args:
        profile (Profile): The imported profile.
        config (Optional[ScopeConfig]): Controls invariant checking.

    Returns:
        ProfileBundle: The profile and its chronological and left-heavy views.

    Raises:
        ProfileInvariantError: If a view does not conserve the profile's weight.
    """
    config = config or ScopeConfig()
    chronological = build_chronological(profile)
    left_heavy = build_left_heavy(profile)
    if config.check_invariants:
        check_invariants(chronological, profile.total_weight, tolerance=config.weight_tolerance)
        check_invariants(
            left_heavy,
            profile.total_non_idle_weight,
            exact_total=True,
            tolerance=config.weight_tolerance,
        )
    return ProfileBundle(profile=profile, chronological=chronological, left_heavy=left_heavy)


class ProfileSession:
    """
    The state owned by a viewer for its whole lifetime.

    Example:
        >>> session = ProfileSession()
        >>> session.load("a 1\\nb 2\\n", "stacks") is not None
        True
        >>> session.handle_key("2")
        True
        >>> session.sort_order
        <SortOrder.LEFT_HEAVY: 'left_heavy'>
    """

    def __init__(self, config: Optional[ScopeConfig] = None):
        self.config = config or ScopeConfig()
        self.logger = logging.getLogger(__name__)
        self._bundle: Optional[ProfileBundle] = None
        self._initial_order = SortOrder.parse(self.config.initial_sort_order)
        self._sort_order = self._initial_order
        self._key_bindings: Dict[str, SortOrder] = {
            key: SortOrder.parse(order) for key, order in self.config.key_bindings.items()
        }

    @property
    def bundle(self) -> Optional[ProfileBundle]:
        return self._bundle

    @property
    def profile(self) -> Optional[Profile]:
        return self._bundle.profile if self._bundle else None

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @property
    def active_view(self) -> Optional[Flamechart]:
        """The precomputed view selected by the current sort order."""
        if self._bundle is None:
            return None
        return self._bundle.view(self._sort_order)

    def load(self, content: Content, file_name: str) -> Optional[Profile]:
        """
        Import ``content`` and make it the current profile.

        Args:
            content (Content): Raw file content.
            file_name (str): File name, used for detection and as the profile name.

        Returns:
            Optional[Profile]: The new profile, or None if nothing was loaded. The
            previous profile stays active in that case.
        """
        profile = import_profile(content, file_name, self.config)
        if profile is None:
            self.logger.warning(f"Unrecognized format: {file_name}")
            return None
        profile.set_name(file_name)
        try:
            bundle = derive_views(profile, self.config)
        except ProfileInvariantError as e:
            self.logger.error(f"Discarding {file_name}, derived views are inconsistent: {e}")
            return None
        self._bundle = bundle
        self.logger.info(
            f"Loaded {file_name}: {profile.frame_count} frames, "
            f"total {profile.format_value(profile.total_weight)}"
        )
        return profile

    def load_file(self, path: Union[str, Path]) -> Optional[Profile]:
        path = Path(path)
        return self.load(path.read_bytes(), path.name)

    def set_sort_order(self, order: Union[str, SortOrder]) -> bool:
        """
        Select a sort order.

        Returns:
            bool: True if the active order changed, False if it was already selected.
        """
        order = SortOrder.parse(order)
        if order is self._sort_order:
            return False
        self._sort_order = order
        self.logger.debug(f"Sort order set to {order.value}")
        return True

    def handle_key(self, key: str) -> bool:
        """
        React to a key press.

        Returns:
            bool: True if the key is bound to a sort order.
        """
        order = self._key_bindings.get(key)
        if order is None:
            return False
        self.set_sort_order(order)
        return True

    def reset_sort_order(self):
        self._sort_order = self._initial_order

    def clear(self):
        self._bundle = None
