from __future__ import annotations
from typing import List
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from .auth import get_current_user, User
from ..latex_utils import convert_to_latex, escape_latex, split_math_segments

router = APIRouter(prefix="/latex", tags=["latex"])


class TextRequest(BaseModel):
	text: str = ""


class LatexResponse(BaseModel):
	latex: str


class SegmentOut(BaseModel):
	text: str
	is_math: bool


class SegmentsResponse(BaseModel):
	segments: List[SegmentOut]


@router.post("/convert", response_model=LatexResponse)
def convert(req: TextRequest, user: User = Depends(get_current_user)):
	return LatexResponse(latex=convert_to_latex(req.text))


@router.post("/escape", response_model=LatexResponse)
def escape(req: TextRequest, user: User = Depends(get_current_user)):
	return LatexResponse(latex=escape_latex(req.text))


@router.post("/segments", response_model=SegmentsResponse)
def segments(req: TextRequest, user: User = Depends(get_current_user)):
	return SegmentsResponse(
		segments=[SegmentOut(text=s.text, is_math=s.is_math) for s in split_math_segments(req.text)]
	)
