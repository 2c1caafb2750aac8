from __future__ import annotations

from .pausable import PauseGate

__all__ = ["PauseGate"]
