import io
import zipfile
from datetime import datetime

from sqlalchemy.exc import OperationalError

from coursework.models import Assignment, AssignmentQuestion, AuthSession
from coursework.settings import settings


def test_info(client):
	assert client.get("/info").json() == {"status": "ok"}


def test_convert_requires_auth(client):
	assert client.post("/latex/convert", json={"text": "x"}).status_code == 401


def test_convert(client, make_headers):
	headers = make_headers("student", role="STUDENT")
	resp = client.post("/latex/convert", json={"text": "50% of $x_1$"}, headers=headers)
	assert resp.status_code == 200
	assert resp.json() == {"latex": "50\\% of $x_1$"}


def test_escape(client, make_headers):
	headers = make_headers("student", role="STUDENT")
	resp = client.post("/latex/escape", json={"text": "**a_b**"}, headers=headers)
	assert resp.json() == {"latex": "**a\\_b**"}


def test_segments(client, make_headers):
	headers = make_headers("student", role="STUDENT")
	resp = client.post("/latex/segments", json={"text": "a $x$"}, headers=headers)
	assert resp.json() == {"segments": [
		{"text": "a ", "is_math": False},
		{"text": "$x$", "is_math": True},
	]}


def test_me_reports_role(client, make_headers):
	headers = make_headers("ta1", role="TA")
	assert client.get("/auth/me", headers=headers).json() == {"username": "ta1", "role": "TA"}


def test_banned_user_is_refused(client, make_headers):
	headers = make_headers("troll", role="STUDENT", banned=True)
	assert client.get("/auth/me", headers=headers).status_code == 403


def test_revoked_session_is_refused(client, make_headers, db_session):
	headers = make_headers("ta1", role="TA")
	db_session.query(AuthSession).delete()
	db_session.commit()
	assert client.get("/auth/me", headers=headers).status_code == 401


def test_register_and_login(client):
	resp = client.post("/auth/register", json={"username": "newbie", "password": "pw123456", "email": "n@example.edu"})
	assert resp.status_code == 201
	dup = client.post("/auth/register", json={"username": "newbie", "password": "x", "email": "n@example.edu"})
	assert dup.status_code == 409
	token = client.post("/auth/token", data={"username": "newbie", "password": "pw123456"}).json()["access_token"]
	me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
	assert me == {"username": "newbie", "role": "STUDENT"}
	bad = client.post("/auth/token", data={"username": "newbie", "password": "wrong"})
	assert bad.status_code == 401


def _seed_assignment(db_session):
	assignment = Assignment(id="a1", title="Lab #3: Waves & Optics", due_date=datetime(2026, 3, 5))
	db_session.add(assignment)
	db_session.add_all([
		AssignmentQuestion(
			assignment_id="a1", question_text="Second question", question_type="FREE_RESPONSE",
			points=5, order=2,
		),
		AssignmentQuestion(
			assignment_id="a1", question_text="Pick $v$", question_type="MC",
			options=["$1$", "$2$"], correct_answer="$1$", points=1, order=1,
			diagram={"svg": "<svg/>"},
		),
	])
	db_session.commit()


def test_export_requires_staff(client, make_headers, db_session):
	_seed_assignment(db_session)
	headers = make_headers("student", role="STUDENT")
	assert client.get("/assignments/a1/export-latex", headers=headers).status_code == 403


def test_export_unknown_assignment(client, make_headers):
	headers = make_headers()
	assert client.get("/assignments/nope/export-latex", headers=headers).status_code == 404


def test_export_latex_zip(client, make_headers, db_session, tmp_path, monkeypatch):
	monkeypatch.setattr(settings, "public_dir", str(tmp_path))
	_seed_assignment(db_session)
	headers = make_headers()
	resp = client.get("/assignments/a1/export-latex", headers=headers)
	assert resp.status_code == 200
	assert resp.headers["content-type"] == "application/zip"
	assert resp.headers["content-disposition"] == 'attachment; filename="Lab_3_Waves_Optics_latex.zip"'
	with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
		tex = zf.read("assignment.tex").decode()
		assert zf.read("images/diagram-q1.svg") == b"<svg/>"
	assert "\\title{Lab \\#3: Waves \\& Optics}" in tex
	assert tex.index("Pick $v$") < tex.index("Second question")
	assert "\\textbf{Question 1} (1 point)" in tex
	assert "\\textbf{Question 2} (5 points)" in tex


def test_export_database_failure_returns_json_500(client, make_headers, db_session, monkeypatch, caplog):
	headers = make_headers()
	real_get = db_session.get

	def failing_get(model, ident, *args, **kwargs):
		if model is Assignment:
			raise OperationalError("SELECT", {}, Exception("database is locked"))
		return real_get(model, ident, *args, **kwargs)

	monkeypatch.setattr(db_session, "get", failing_get)
	resp = client.get("/assignments/a1/export-latex", headers=headers)
	assert resp.status_code == 500
	assert resp.headers["content-type"] == "application/json"
	assert resp.json() == {"detail": "Internal server error"}
	assert any("Export LaTeX failed for assignment a1" in r.getMessage() for r in caplog.records)
