"""Monotonic request tokens for search-as-you-type channels.

Each channel (serial search, phone search, warranty resolution) hands out an
increasing token per dispatched request. A response is accepted only when
its token is still the latest issued on that channel; anything older has
been superseded and is dropped.
"""
import threading
from typing import Dict


class RequestChannel:
    def __init__(self, name: str):
        self.name = name
        self._latest = 0
        self._lock = threading.Lock()

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        """Token for a new request; supersedes everything issued before."""
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest


class ChannelSet:
    """Lazily created channels keyed by name."""

    def __init__(self):
        self._channels: Dict[str, RequestChannel] = {}

    def __getitem__(self, name: str) -> RequestChannel:
        if name not in self._channels:
            self._channels[name] = RequestChannel(name)
        return self._channels[name]


__all__ = ['RequestChannel', 'ChannelSet']
