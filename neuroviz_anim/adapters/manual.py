from __future__ import annotations

from typing import Dict, Hashable

from neuroviz_anim.adapters.base import FrameCallback, FrameScheduler


class ManualFrameScheduler(FrameScheduler):
    """Frame scheduler driven by the host's render loop.

    The host calls `advance(now)` once per rendered frame. Callbacks requested
    while a frame is being dispatched run on the following frame, the same way
    requestAnimationFrame behaves.
    """

    def __init__(self):
        self._callbacks: Dict[int, FrameCallback] = {}
        self._next_handle = 0

    def request_frame(self, callback: FrameCallback) -> Hashable:
        self._next_handle += 1
        self._callbacks[self._next_handle] = callback
        return self._next_handle

    def cancel_frame(self, handle: Hashable) -> None:
        self._callbacks.pop(handle, None)

    def pending(self) -> int:
        return len(self._callbacks)

    def advance(self, now: float) -> int:
        """Run every callback queued before this call; return how many ran."""
        ran = 0
        for handle in list(self._callbacks):
            # A callback may cancel one that is due later in this frame
            callback = self._callbacks.pop(handle, None)
            if callback is None:
                continue
            callback(now)
            ran += 1
        return ran
