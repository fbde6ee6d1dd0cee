from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from app.db.database import Base

class User(Base):
    __tablename__ = 'users'
    user_no = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(50), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    nickname = Column(String(50), unique=True, nullable=False)
    gender = Column(String(10), nullable=True)
    age = Column(Integer, nullable=True)
    email = Column(String(255), unique=True, nullable=False)
    profile_image = Column(String(500), nullable=True)
    token_count = Column(Integer, nullable=False, default=5)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

class Admin(Base):
    __tablename__ = 'admins'
    admin_no = Column(Integer, primary_key=True, index=True)
    admin_id = Column(String(50), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    admin_name = Column(String(50), nullable=False)
    admin_email = Column(String(255), nullable=True)
    admin_role = Column(String(20), nullable=False, default='ADMIN')
    admin_status = Column(String(20), nullable=False, default='ACTIVE')
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    last_login_at = Column(DateTime, nullable=True)

class EmailVerification(Base):
    __tablename__ = 'email_verifications'
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    code_hash = Column(String(255), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now)
    expires_at = Column(DateTime, nullable=False)
    verified_at = Column(DateTime, nullable=True)
