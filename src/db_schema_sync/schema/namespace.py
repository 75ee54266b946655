"""Namespace resolution for schema definition files.

A namespace groups the tables loaded from one file. It is derived from the
file path, either through the first capture group of a configured regular
expression or, when that does not match, from the path itself. Either way
the result is lower-cased, so the same path always yields the same key.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from db_schema_sync.errors import WatcherSetupError
from db_schema_sync.utils import FilePath


@dataclass(frozen=True)
class NamespaceResolver:
    """Derives namespace identifiers from file paths.

    Args:
        name_regexp: Optional pattern; group 1 of a match names the namespace
    """

    name_regexp: Optional[re.Pattern] = None

    @classmethod
    def from_pattern(cls, pattern: Union[str, re.Pattern, None]) -> "NamespaceResolver":
        """Build a resolver from a pattern string or compiled pattern.

        Raises:
            WatcherSetupError: If the pattern is invalid or has no capture group
        """
        if not pattern:
            return cls(None)
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as e:
                raise WatcherSetupError(f"Invalid namespace regexp {pattern!r}: {e}") from e
        if pattern.groups < 1:
            raise WatcherSetupError(
                f"Namespace regexp {pattern.pattern!r} needs a capture group for the namespace"
            )
        return cls(pattern)

    def resolve(self, path: FilePath) -> str:
        path_str = str(path)
        if self.name_regexp is not None:
            match = self.name_regexp.search(path_str)
            if match and match.group(1) is not None:
                return match.group(1).lower()
        return path_str.lower()
