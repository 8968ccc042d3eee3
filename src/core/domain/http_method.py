"""HTTP verbs accepted by the fetch command.

Only four verbs cross the front-end boundary. Keeping them in the domain
layer lets the command handlers and the API client share the same set
without importing each other.
"""

from __future__ import annotations

from enum import Enum


class HttpMethod(str, Enum):
    """Verbs supported by `secure_fetch`."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: str) -> "HttpMethod | None":
        """Return the matching verb, or None when unsupported.

        Matching is exact: `"get"` is not `"GET"`.
        """

        try:
            return cls(value)
        except ValueError:
            return None
