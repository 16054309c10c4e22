"""
NeuroViz animation and rendering package.

This package provides:
- The entrance animation driver and its frame scheduler protocol
- A session object binding a trace snapshot to its layout and animation
- Render element builders (colours, floors, renderable edges)
- A Manim scene and runner that draw a laid-out trace
"""

from .models.state import AnimationState
from .adapters.base import FrameScheduler
from .adapters.manual import ManualFrameScheduler
from .driver import AnimationDriver
from .session import GraphSession

__all__ = [
    "AnimationState",
    "FrameScheduler",
    "ManualFrameScheduler",
    "AnimationDriver",
    "GraphSession",
]
