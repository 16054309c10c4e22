from .state import AnimationState
