"""
Configuration for the progress indicator monitor.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from pbmonitor.core.detection import DEFAULT_DEBOUNCE_INTERVAL, DEFAULT_PROGRESS_ROLES
from pbmonitor.core.poller import DEFAULT_POLLING_INTERVAL
from pbmonitor.core.subscriptions import DEFAULT_NOTIFICATION
from pbmonitor.core.ui_traversal import DEFAULT_MAX_CHILDREN, DEFAULT_MAX_DEPTH


class MonitorConfig(BaseModel):
    """Tunables for the detection engine."""
    polling_interval: float = Field(DEFAULT_POLLING_INTERVAL, gt=0,
                                    description="Seconds between scans of the frontmost app")
    debounce_interval: float = Field(DEFAULT_DEBOUNCE_INTERVAL, gt=0,
                                     description="Seconds a detection suppresses identical repeats")
    max_children: int = Field(DEFAULT_MAX_CHILDREN, ge=1,
                              description="Elements with more children than this are not searched")
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=1,
                           description="Maximum depth of the polling tree search")
    progress_roles: List[str] = Field(default_factory=lambda: list(DEFAULT_PROGRESS_ROLES))
    notification: str = DEFAULT_NOTIFICATION
    poll_enabled: bool = True
    notifications_enabled: bool = True

    @field_validator("progress_roles")
    @classmethod
    def _roles_not_empty(cls, roles):
        roles = [role.strip() for role in roles if role and role.strip()]
        if not roles:
            raise ValueError("at least one progress role is required")
        return roles

    @classmethod
    def from_file(cls, path: str, overrides: Optional[Dict[str, Any]] = None) -> "MonitorConfig":
        """Load a JSON config file; non-None overrides win over file values."""
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        data.update({k: v for k, v in (overrides or {}).items() if v is not None})
        return cls(**data)
