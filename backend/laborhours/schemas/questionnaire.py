from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class Leaf(BaseModel):
    f4_index: str
    name: Optional[str] = None
    note: Optional[str] = None


class Level3(BaseModel):
    f3_index: str
    name: Optional[str] = None
    note: Optional[str] = None
    children: List[Leaf] = []


class Level2(BaseModel):
    f2_index: str
    name: Optional[str] = None
    note: Optional[str] = None
    children: List[Level3] = []


class Level1(BaseModel):
    f1_index: str
    name: str
    note: Optional[str] = None
    children: List[Level2] = []


class SystemResponse(BaseModel):
    system_id: int
    system_name: str


class ResponseUpdate(BaseModel):
    system_id: Optional[int] = None
    labor_hours: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)


class ResponseItem(BaseModel):
    f4_index: str
    system_id: Optional[int] = None
    labor_hours: Optional[float] = None
    notes: Optional[str] = None
    is_submitted: bool = False
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubmitResponse(BaseModel):
    success: bool
    submitted: int
    total_hours: float
    submitted_at: datetime
