from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class TagScore(_Camel):
    name: Optional[str] = None
    score: Optional[float] = None

class GptImageTags(_Camel):
    """tagsJson for source GPT_IMAGE."""
    tags: List[str] = Field(default_factory=list)

class DesktopMlTags(_Camel):
    """tagsJson for source DESKTOP_ML."""
    main_tag: Optional[TagScore] = None
    sub_tags: List[TagScore] = Field(default_factory=list)
    present_tags: List[TagScore] = Field(default_factory=list)
    all_scores: Dict[str, float] = Field(default_factory=dict)
    frame_count: Optional[int] = None

class AutoTagRequest(DesktopMlTags):
    video_no: int

class DesktopTagTarget(_Camel):
    video_no: int
    title: str
    created_at: Optional[datetime] = None
    upload_date: Optional[datetime] = None
