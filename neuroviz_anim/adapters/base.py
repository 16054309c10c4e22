from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Hashable

FrameCallback = Callable[[float], None]


class FrameScheduler(ABC):
    """Host hook that runs a callback once, on the next rendered frame."""

    @abstractmethod
    def request_frame(self, callback: FrameCallback) -> Hashable:
        ...

    @abstractmethod
    def cancel_frame(self, handle: Hashable) -> None:
        ...
