import json
import logging
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Union

logger = logging.getLogger(__name__)


class ScopeConfig(BaseModel):
    """
    ScopeConfig defines how profiles are imported and how the views are selected.

    Attributes:
        idle_frame_names (List[str]): Chrome frame names whose samples are recorded as idle time.
        root_frame_names (List[str]): Synthetic root frame names dropped from Chrome stacks.
        key_bindings (Dict[str, str]): Maps a single key to the name of a sort order.
        initial_sort_order (str): Sort order a new session starts in.
        check_invariants (bool): Validate both views after they are derived.
        weight_tolerance (float): Relative tolerance used when comparing float weights.

    Example:
        >>> config = ScopeConfig()
        >>> config.key_bindings["2"]
        'left_heavy'
    """

    model_config = ConfigDict(extra="forbid")

    idle_frame_names: List[str] = Field(
        default_factory=lambda: ["(idle)"],
        title="Idle Frame Names",
        description="Samples whose leaf frame has one of these names count as idle time",
    )
    root_frame_names: List[str] = Field(
        default_factory=lambda: ["(root)"],
        title="Root Frame Names",
        description="Synthetic root frames which are stripped from every stack",
    )
    key_bindings: Dict[str, str] = Field(
        default_factory=lambda: {"1": "chronological", "2": "left_heavy"},
        title="Key Bindings",
        description="Keyboard shortcuts mapped to sort order names",
    )
    initial_sort_order: str = Field(
        default="chronological",
        title="Initial Sort Order",
        description="Sort order selected when a session is created or reset",
    )
    check_invariants: bool = Field(
        default=True,
        title="Check Invariants",
        description="Validate weight conservation of both views after each import",
    )
    weight_tolerance: float = Field(
        default=1e-6,
        ge=0,
        title="Weight Tolerance",
        description="Relative tolerance for comparing accumulated float weights",
    )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ScopeConfig":
        """
        Load a configuration from a JSON file.

        Args:
            path (Union[str, Path]): Location of the JSON document.

        Returns:
            ScopeConfig: The validated configuration.

        Example:
            >>> config = ScopeConfig.from_file("stackscope.json")  # doctest: +SKIP
        """
        with open(path, "r") as f:
            data = json.load(f)
        logger.debug(f"Loaded configuration from {path}")
        return cls.model_validate(data)
