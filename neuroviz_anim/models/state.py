from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from neuroviz_core.enums import AnimationPhase


@dataclass
class AnimationState:
    phase: AnimationPhase = AnimationPhase.IDLE
    progress: float = 0.0
    raw: float = 0.0
    start: Optional[float] = None
    last_tick: Optional[float] = None

    def clone(self) -> "AnimationState":
        return replace(self)

    def diff(self, other: "AnimationState") -> Dict[str, Any]:
        """Return differences from `other` → `self`.

        Returns dict with keys among phase and progress, each a (from, to) tuple.
        """
        changes: Dict[str, Any] = {}
        if self.phase != other.phase:
            changes["phase"] = (other.phase, self.phase)
        if abs(self.progress - other.progress) > 1e-9:
            changes["progress"] = (other.progress, self.progress)
        return changes
