# models/site_status.py

from typing import Optional
from pydantic import BaseModel


class SiteStatus(BaseModel):
    """Stored at config/siteStatus."""
    maintenance_mode: bool = False
    emergency_shutdown: bool = False
    maintenance_eta: Optional[str] = None


class SiteStatusUpdate(BaseModel):
    maintenance_mode: Optional[bool] = None
    emergency_shutdown: Optional[bool] = None
    maintenance_eta: Optional[str] = None
