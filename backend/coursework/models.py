from __future__ import annotations
from datetime import datetime
from uuid import uuid4
from sqlalchemy import Boolean, Column, String, DateTime, Float, ForeignKey, Integer, JSON, Text
from sqlalchemy.orm import relationship
from .db import Base


ROLES = ("STUDENT", "TA", "PROFESSOR", "ADMIN")
QUESTION_TYPES = ("MC", "NUMERIC", "FREE_RESPONSE")


def _new_id() -> str:
	return uuid4().hex


class AuthUser(Base):
	__tablename__ = "auth_users"
	# Primary key is username
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	role = Column(String(16), default="STUDENT", nullable=False)
	is_banned = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# One row per issued token (jti); deleting the row revokes the token
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), nullable=False, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Assignment(Base):
	__tablename__ = "assignments"
	id = Column(String(64), primary_key=True, default=_new_id)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	due_date = Column(DateTime, nullable=True)
	total_points = Column(Float, default=100, nullable=False)
	published = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	questions = relationship(
		"AssignmentQuestion",
		back_populates="assignment",
		order_by="AssignmentQuestion.order",
		cascade="all, delete-orphan",
	)


class AssignmentQuestion(Base):
	__tablename__ = "assignment_questions"
	id = Column(String(64), primary_key=True, default=_new_id)
	assignment_id = Column(String(64), ForeignKey("assignments.id"), nullable=False, index=True)
	question_text = Column(Text, nullable=False)
	question_type = Column(String(16), nullable=False)
	options = Column(JSON, nullable=True)  # list of option strings for MC
	correct_answer = Column(Text, nullable=True)
	points = Column(Float, default=10, nullable=False)
	order = Column(Integer, default=0, nullable=False)
	diagram = Column(JSON, nullable=True)
	image_url = Column(String(512), nullable=True)

	assignment = relationship("Assignment", back_populates="questions")
