from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from contentresolver.errors import SerializationError


class EntryType(str, Enum):
    FILE = 'file'
    DIR = 'dir'


@dataclass(frozen=True)
class FileContent:
    content: bytes
    source_path: str
    etag: Optional[str] = None


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    path: str
    entry_type: EntryType

    def to_dict(self) -> dict[str, str]:
        return {'name': self.name, 'path': self.path, 'type': self.entry_type.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'DirectoryEntry':
        """Creates entry from its dictionary form.

        Parameters
        ----------
        data : dict[str, Any]
            Dictionary with 'name', 'path' and 'type' fields.

        Returns
        -------
        DirectoryEntry
            Class instance.
        """
        try:
            return cls(data['name'], data['path'], EntryType(data['type']))
        except (KeyError, TypeError, ValueError) as err:
            raise SerializationError(f'invalid directory entry {data!r}: {err}') from err


@dataclass
class DirectoryListing:
    path: str
    entries: list[DirectoryEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {'path': self.path, 'entries': [entry.to_dict() for entry in self.entries]}
