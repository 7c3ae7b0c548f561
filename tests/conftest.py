import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coursework.db import Base, get_db
from coursework.main import app
from coursework.models import AuthUser
from coursework.routers.auth import User, open_session


@pytest.fixture
def db_session():
	engine = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=engine)
	TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
	session = TestingSession()
	try:
		yield session
	finally:
		session.close()
		engine.dispose()


@pytest.fixture
def client(db_session):
	def _get_db():
		yield db_session

	app.dependency_overrides[get_db] = _get_db
	try:
		yield TestClient(app)
	finally:
		app.dependency_overrides.clear()


@pytest.fixture
def make_headers(db_session):
	"""Create a user row plus a live session and return bearer headers for it."""
	def _make(username="prof", role="PROFESSOR", banned=False):
		db_session.add(AuthUser(
			username=username,
			password_hash="not-used",
			email=f"{username}@example.edu",
			role=role,
			is_banned=banned,
		))
		db_session.commit()
		token = open_session(db_session, User(username=username, role=role))
		return {"Authorization": f"Bearer {token}"}
	return _make
