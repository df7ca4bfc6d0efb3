"""
Abstract Directory Connection
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DirectoryEntry:
    """A search result: distinguished name plus string attribute values."""

    dn: str
    attributes: dict[str, list[str]] = field(default_factory=dict)

    def get_attribute_value(self, name: str) -> str:
        """First value of ``name``, or an empty string when absent.

        Attribute names are case-insensitive in LDAP.
        """
        values = self.get_attribute_values(name)
        return values[0] if values else ""

    def get_attribute_values(self, name: str) -> list[str]:
        if name in self.attributes:
            return list(self.attributes[name])
        lowered = name.lower()
        for key, vals in self.attributes.items():
            if key.lower() == lowered:
                return list(vals)
        return []


class DirectoryConnection(ABC):
    """A single session to a directory server.

    Implementations raise ``BindRejectedError`` when the server refuses a
    bind, ``DirectorySearchError`` when a search fails, and
    ``DirectoryConnectionError`` for transport problems.
    """

    @abstractmethod
    def bind(self, dn: str, password: str) -> None:
        """
        Authenticate the session as ``dn``

        The bound identity of the session changes for every later call.
        """

    @abstractmethod
    def search(
        self, base_dn: str, search_filter: str, attributes: Sequence[str]
    ) -> list[DirectoryEntry]:
        """
        Whole-subtree search without alias dereferencing or limits

        Args:
            base_dn: Search base
            search_filter: Complete, already escaped filter
            attributes: Attribute names to return

        Returns:
            list: Matching entries in server order
        """

    @abstractmethod
    def close(self) -> None:
        """Release the session; further calls are undefined."""
