"""Decide which events trigger the command."""
from __future__ import annotations

from dataclasses import dataclass

from inotify_simple import flags

from .models import Event

# A completed write or an atomic rename into the directory means the file is
# ready; open/modify/attrib fire while the writer is still busy.
ARRIVAL_MASK = flags.CLOSE_WRITE | flags.MOVED_TO
HIDDEN_MARKER = "."


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """Verdict for one event and the reason it was rejected, if any."""

    event: Event
    qualifies: bool
    reason: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "qualifies": self.qualifies,
            "reason": self.reason,
        }


class EventPolicy:
    """Filter events down to file arrivals that are not hidden or temporary."""

    def __init__(
        self,
        *,
        arrival_mask: int = ARRIVAL_MASK,
        hidden_marker: str = HIDDEN_MARKER,
    ) -> None:
        self.arrival_mask = arrival_mask
        self.hidden_marker = hidden_marker

    def decide(self, event: Event) -> PolicyDecision:
        if not event.name:
            return PolicyDecision(event, False, "no-name")
        if not event.mask & self.arrival_mask:
            return PolicyDecision(event, False, "kind")
        if event.name.startswith(self.hidden_marker):
            return PolicyDecision(event, False, "hidden")
        return PolicyDecision(event, True)

    def qualifies(self, event: Event) -> bool:
        return self.decide(event).qualifies


__all__ = ["ARRIVAL_MASK", "EventPolicy", "PolicyDecision"]
