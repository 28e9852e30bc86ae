from enum import Enum, EnumMeta
from typing import List, Optional


def _normalize(name: str) -> str:
    return str(name).strip().lower().replace("-", "_").replace(" ", "_")


class EnumManipulator:
    """
    Look up members of an Enum by a loosely spelled name.

    Member names and string values both match, ignoring case, and hyphens or
    spaces are treated as underscores. This is what user input such as
    ``--order left-heavy`` or a configured key binding needs.
    """

    def __init__(self, input_enum: EnumMeta):
        """
        Initialize the EnumManipulator instance with a given Enum.

        Args:
            input_enum (EnumMeta): An Enum class to be queried.

        Example:
            >>> from enum import Enum
            >>> class Color(Enum):
            ...     LIGHT_RED = "light_red"
            >>> EnumManipulator(Color).fetch_enum("Light-Red")
            <Color.LIGHT_RED: 'light_red'>
        """
        self._enum = input_enum

    def fetch_keys(self) -> List[str]:
        return list(self._enum.__members__.keys())

    def fetch_enum(self, key_name: str) -> Optional[Enum]:
        """
        Retrieve a member by name or by string value.

        Args:
            key_name (str): The name to look up.

        Returns:
            Optional[Enum]: The matching member, or None.
        """
        wanted = _normalize(key_name)
        for member in self._enum:
            if wanted == _normalize(member.name):
                return member
            if isinstance(member.value, str) and wanted == _normalize(member.value):
                return member
        return None

    def require(self, key_name: str) -> Enum:
        """
        Like fetch_enum but raises ValueError listing the accepted names.

        Raises:
            ValueError: If nothing matches.
        """
        member = self.fetch_enum(key_name)
        if member is None:
            choices = ", ".join(key.lower() for key in self.fetch_keys())
            raise ValueError(f"Unknown {self._enum.__name__} {key_name!r}, expected one of: {choices}")
        return member
