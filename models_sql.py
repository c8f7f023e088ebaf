from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

class Paste(BaseModel):
    id: str
    created_at: datetime
    title: str
    owner_id: Optional[str] = None
    private: bool = False

class Pasty(BaseModel):
    id: str
    paste_id: str
    title: str
    content: str
    language: str = "Text"

class User(BaseModel):
    id: str
    created_at: datetime
    username: str
    avatar_url: str
    provider_name: str
    provider_id: str

class PastyCreate(BaseModel):
    title: str = ""
    content: str = Field(..., min_length=1)
    language: Optional[str] = None

class PasteCreate(BaseModel):
    title: str = ""
    pasties: List[PastyCreate] = Field(..., min_length=1)
    private: bool = False
    anonymous: bool = False

class PasteOut(Paste):
    pasties: List[Pasty]

class RegisterRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=32)
