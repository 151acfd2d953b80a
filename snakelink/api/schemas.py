from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Optional


class AppConfigUpdate(BaseModel):
    """Partial app config: keys present in a section override the stored ones."""
    general: Optional[dict[str, Any]] = None
    sensor_system: Optional[dict[str, Any]] = Field(default=None, alias="sensorSystem")
