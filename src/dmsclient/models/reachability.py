"""Reachability state enum."""

from enum import Enum


class ReachabilityState(str, Enum):
    """Reachability of the DMS host.

    State transitions:
    unknown → reachable ⇄ unreachable
       ↘________________↗

    UNKNOWN is only the initial value; it is never published.
    """

    UNKNOWN = "unknown"
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"

    @classmethod
    def from_bool(cls, reachable: bool) -> "ReachabilityState":
        return cls.REACHABLE if reachable else cls.UNREACHABLE
