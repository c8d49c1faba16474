"""Display Result — what the widget receives for one display request."""

from typing import List, Optional

from pydantic import BaseModel

from notiproof_engine.models.blending import BlendingConfig
from notiproof_engine.models.campaign import DisplayDecision
from notiproof_engine.models.event import Event


class DisplayResult(BaseModel):
    decision: DisplayDecision
    events: List[Event] = []
    config: Optional[BlendingConfig] = None
    rotation_interval_ms: Optional[int] = None
