from __future__ import annotations


class NotFoundError(LookupError):
    """A seeker or job referenced by the caller does not exist."""

    def __init__(self, kind: str, identifier: object):
        super().__init__(f"{kind} {identifier} not found")
        self.kind = kind
        self.identifier = identifier
