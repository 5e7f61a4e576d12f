from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class StartEnrichmentRequest(BaseModel):
    # Left untyped so a non-string video_id reaches the handler's own check
    video_id: Any = None
    recipe_id: Any = None


class StartEnrichmentResponse(BaseModel):
    message: str
    video_id: str
    recipe_id: Optional[Any] = None
