from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    mobile: Optional[str] = None
    email_verified: bool
    mobile_verified: bool
    created_at: datetime
