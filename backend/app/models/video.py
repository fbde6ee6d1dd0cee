from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Text, Float, ForeignKey, UniqueConstraint
from app.db.database import Base

REVIEW_PENDING = 'P'
REVIEW_APPROVED = 'A'
REVIEW_HELD = 'H'

BLOCKED = 'Y'
NOT_BLOCKED = 'N'

REACTION_LIKE = 'LIKE'
REACTION_DISLIKE = 'DISLIKE'

SOURCE_GPT_IMAGE = 'GPT_IMAGE'
SOURCE_DESKTOP_ML = 'DESKTOP_ML'

TAG_COLUMNS = ('tag1', 'tag2', 'tag3', 'tag4', 'tag5')

class Video(Base):
    __tablename__ = 'videos'
    video_no = Column(Integer, primary_key=True, index=True)
    user_no = Column(Integer, ForeignKey('users.user_no'), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    file_name = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    file_path = Column(String(1000), nullable=False)
    tag1 = Column(String(50), nullable=True)
    tag2 = Column(String(50), nullable=True)
    tag3 = Column(String(50), nullable=True)
    tag4 = Column(String(50), nullable=True)
    tag5 = Column(String(50), nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    dislike_count = Column(Integer, nullable=False, default=0)
    upload_date = Column(DateTime, default=datetime.now, index=True)
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    is_blocked = Column(String(1), nullable=False, default=NOT_BLOCKED)
    review_status = Column(String(1), nullable=False, default=REVIEW_PENDING)

    @property
    def tags(self) -> list[str]:
        return [t for t in (self.tag1, self.tag2, self.tag3, self.tag4, self.tag5) if t]

    @property
    def is_public(self) -> bool:
        return self.is_blocked == NOT_BLOCKED and self.review_status == REVIEW_APPROVED

class VideoFeature(Base):
    __tablename__ = 'video_features'
    __table_args__ = (UniqueConstraint('video_no', 'source', name='uq_video_feature_source'),)
    feature_no = Column(Integer, primary_key=True, index=True)
    video_no = Column(Integer, ForeignKey('videos.video_no'), nullable=False, index=True)
    source = Column(String(30), nullable=False)
    tags_json = Column(Text, nullable=False)
    frame_time = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

class VideoReaction(Base):
    __tablename__ = 'video_reactions'
    __table_args__ = (UniqueConstraint('video_no', 'user_no', name='uq_video_reaction_user'),)
    reaction_no = Column(Integer, primary_key=True, index=True)
    video_no = Column(Integer, ForeignKey('videos.video_no'), nullable=False, index=True)
    user_no = Column(Integer, ForeignKey('users.user_no'), nullable=False, index=True)
    reaction_type = Column(String(10), nullable=False)  # LIKE|DISLIKE
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
