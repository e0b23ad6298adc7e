from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, String, DateTime, Integer, Text, UniqueConstraint
from .db import Base


class AuthUser(Base):
	__tablename__ = "auth_users"
	# Primary key is username
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# JWT "jti" claim
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), nullable=False, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Player(Base):
	__tablename__ = "players"
	username = Column(String(128), primary_key=True, index=True)
	total_points = Column(Integer, default=0, nullable=False)
	current_level = Column(Integer, default=1, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Tutorial(Base):
	__tablename__ = "tutorials"
	id = Column(String(64), primary_key=True)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	# maths | thinking | reading | writing | science | agent | speaking
	tutorial_type = Column(String(32), nullable=False)
	difficulty_level = Column(Integer, default=1, nullable=False)
	age_min = Column(Integer, default=5, nullable=False)
	age_max = Column(Integer, default=12, nullable=False)
	points_reward = Column(Integer, default=10, nullable=False)
	questions_json = Column(Text, nullable=True)  # {"questions": [{"id", "question", "correct"}]}
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PlayerProgress(Base):
	__tablename__ = "player_progress"
	__table_args__ = (UniqueConstraint("username", "tutorial_id", name="uq_progress_player_tutorial"),)
	id = Column(Integer, primary_key=True, autoincrement=True)
	username = Column(String(128), nullable=False, index=True)
	tutorial_id = Column(String(64), nullable=False)
	# not_started | in_progress | completed
	status = Column(String(16), default="not_started", nullable=False)
	points_earned = Column(Integer, default=0, nullable=False)
	attempts = Column(Integer, default=0, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Achievement(Base):
	__tablename__ = "achievements"
	id = Column(Integer, primary_key=True, autoincrement=True)
	title = Column(String(128), nullable=False, unique=True)
	description = Column(Text, nullable=False, default="")
	icon = Column(String(32), nullable=False, default="")
	points_required = Column(Integer, nullable=True)
	tutorials_required = Column(Integer, nullable=True)
	badge_color = Column(String(32), nullable=False, default="gold")
	is_secret = Column(Boolean, default=False, nullable=False)


class PlayerAchievement(Base):
	__tablename__ = "player_achievements"
	__table_args__ = (UniqueConstraint("username", "achievement_id", name="uq_player_achievement"),)
	id = Column(Integer, primary_key=True, autoincrement=True)
	username = Column(String(128), nullable=False, index=True)
	achievement_id = Column(Integer, nullable=False)
	earned_at = Column(DateTime, default=datetime.utcnow, nullable=False)
