"""
wiring - Delayed Call Queue

Method calls that wait for a service which is not built yet. A call is
queued under the identifier it waits for and delivered when that service
finishes a fresh build.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from wiring.definitions import RawArguments


@dataclass(frozen=True)
class DelayedCall:
    """A call of ``caller_id.method`` postponed until ``waiting_for`` is built."""

    waiting_for: str
    caller_id: str
    method: str
    arguments: RawArguments = ()


class DelayedCallQueue:
    """Delayed calls grouped by the identifier they wait for."""

    def __init__(self) -> None:
        self._calls: Dict[str, List[DelayedCall]] = {}

    def add(self, call: DelayedCall) -> None:
        self._calls.setdefault(call.waiting_for, []).append(call)

    def pop(self, service_id: str) -> List[DelayedCall]:
        """Remove and return the calls waiting for ``service_id``, oldest first."""
        return self._calls.pop(service_id, [])

    def pending(self, service_id: str) -> List[DelayedCall]:
        return list(self._calls.get(service_id, ()))

    def discard_caller(self, caller_id: str) -> int:
        """Drop every call queued by ``caller_id``; returns how many were dropped."""
        dropped = 0
        for waiting_for in list(self._calls):
            kept = [call for call in self._calls[waiting_for] if call.caller_id != caller_id]
            dropped += len(self._calls[waiting_for]) - len(kept)
            if kept:
                self._calls[waiting_for] = kept
            else:
                del self._calls[waiting_for]
        return dropped

    def __len__(self) -> int:
        return sum(len(calls) for calls in self._calls.values())
