from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class VideoSummary(_Camel):
    video_no: int
    title: str
    description: Optional[str] = None
    my_reaction: Optional[str] = None
    upload_date: Optional[datetime] = None
    view_count: int = 0
    like_count: int = 0
    dislike_count: int = 0
    tag1: Optional[str] = None
    tag2: Optional[str] = None
    tag3: Optional[str] = None
    tag4: Optional[str] = None
    tag5: Optional[str] = None
    review_status: str
    is_blocked: str
    thumbnail_url: Optional[str] = None

class VideoPage(_Camel):
    content: List[VideoSummary]
    page: int
    size: int
    total_elements: int
    total_pages: int

class VideoUpdateRequest(_Camel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = Field(default=None, max_length=5)

class ReactionResponse(_Camel):
    like_count: int
    dislike_count: int
    my_reaction: Optional[str] = None

class ViewCountResponse(_Camel):
    view_count: int

class SimpleVideo(_Camel):
    video_no: int
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    like_count: int = 0
    dislike_count: int = 0
    view_count: int = 0
    uploader_nickname: Optional[str] = None
    created_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)

class HomeSummary(_Camel):
    total_count: int
    top_liked: Optional[SimpleVideo] = None
    top_viewed: Optional[SimpleVideo] = None
    top_disliked: Optional[SimpleVideo] = None
