"""
Core enumerations for the NeuroViz reasoning graph.

This module defines the fixed vocabularies used by explanation traces and by
the entrance animation that presents their layout.
"""

from enum import Enum


class NodeType(Enum):
    """
    Kinds of nodes in an explanation trace.

    The type tag only drives colouring; the layout solver never reads it.
    """

    INTENT = "intent"
    """What the user is asking for."""

    FACT = "fact"
    """A retrieved or known fact."""

    INTERMEDIATE = "intermediate"
    """A partial result derived along the way."""

    CONCLUSION = "conclusion"
    """A final or near-final claim."""

    CONSTRAINT = "constraint"
    """A limitation that shapes the answer."""

    CONTEXT = "context"
    """Background information framing the question."""

    @classmethod
    def parse(cls, value) -> "NodeType | None":
        """Return the matching member for `value`, or None if it is unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class Confidence(Enum):
    """Overall confidence reported alongside a trace."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnimationPhase(Enum):
    """
    Lifecycle of the entrance animation.

    - IDLE: nothing is playing; progress reads as 0
    - RUNNING: frames are being scheduled and progress is ramping up
    - COMPLETE: progress reached 1 and no further frames are scheduled
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"
