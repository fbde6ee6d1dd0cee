from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class PromptFindingRequest(_Camel):
    prompt: str
    sort: Optional[str] = 'latest'  # views|latest|oldest|likes|dislikes, anything else sorts as latest

class VideoMatch(_Camel):
    video_no: int
    title: str
    description: Optional[str] = None
    views: int = 0
    likes: int = 0
    dislikes: int = 0
    created_at: Optional[datetime] = None
    duration_sec: int = 0
    tags: List[str] = Field(default_factory=list)
    match_score: float
    match_level: str

class PromptFindingResponse(_Camel):
    original_prompt: str
    intent_summary: str
    predicted_tags: List[str]
    videos: List[VideoMatch]
