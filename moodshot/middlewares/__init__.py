"""Request middlewares for the moodshot service."""
from __future__ import annotations

from moodshot.middlewares.body_guard import BodyGuardMiddleware
from moodshot.middlewares.cors import EmptyPreflightCORSMiddleware

__all__ = ["BodyGuardMiddleware", "EmptyPreflightCORSMiddleware"]
