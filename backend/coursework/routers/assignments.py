from __future__ import annotations
import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session
from .auth import require_role, User, STAFF_ROLES
from ..db import get_db
from ..models import Assignment, AssignmentQuestion
from ..settings import settings
from ..latex_export import build_assignment_bundle, export_filename, package_bundle

router = APIRouter(prefix="/assignments", tags=["assignments"])

logger = logging.getLogger(__name__)


@router.get("/{assignment_id}/export-latex")
def export_latex(
	assignment_id: str,
	user: User = Depends(require_role(*STAFF_ROLES)),
	db: Session = Depends(get_db),
):
	try:
		assignment = db.get(Assignment, assignment_id)
		if assignment is None:
			raise HTTPException(status_code=404, detail="Not found")
		questions = (
			db.query(AssignmentQuestion)
			.filter(AssignmentQuestion.assignment_id == assignment_id)
			.order_by(AssignmentQuestion.order.asc())
			.all()
		)
		bundle = build_assignment_bundle(assignment, questions, settings.public_dir)
		payload = package_bundle(bundle)
	except HTTPException:
		raise
	except Exception:
		logger.exception("Export LaTeX failed for assignment %s", assignment_id)
		raise HTTPException(status_code=500, detail="Internal server error")
	logger.info(
		"Exported assignment %s as LaTeX for %s (%d questions, %d files)",
		assignment_id, user.username, len(questions), len(bundle.files),
	)
	return Response(
		content=payload,
		media_type="application/zip",
		headers={"Content-Disposition": f'attachment; filename="{export_filename(assignment.title)}"'},
	)
