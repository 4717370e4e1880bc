from pydantic import BaseModel, Field
from typing import Optional, Dict, Any


class SettingUpdate(BaseModel):
    value: Dict[str, Any] = Field(..., description="Valores a guardar (se combinan con los existentes)")
    description: Optional[str] = None


class SettingOut(BaseModel):
    key: str
    value: Dict[str, Any]
    description: Optional[str] = None
