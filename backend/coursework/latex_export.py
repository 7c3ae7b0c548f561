from __future__ import annotations

import io
import logging
import os
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .latex_utils import convert_to_latex, escape_latex

logger = logging.getLogger(__name__)

TEX_FILENAME = "assignment.tex"
IMAGES_DIR = "images"

BASE_PACKAGES = (
	"\\usepackage[utf8]{inputenc}",
	"\\usepackage[T1]{fontenc}",
	"\\usepackage{amsmath,amssymb}",
	"\\usepackage{graphicx}",
)
TRAILING_PACKAGES = (
	"\\usepackage[margin=1in]{geometry}",
	"\\usepackage{enumerate}",
	"\\usepackage{fancyhdr}",
)

_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9_\- ]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Diagram:
	type: str
	content: str


@dataclass
class LatexBundle:
	tex: str
	# archive path -> file bytes
	files: Dict[str, bytes] = field(default_factory=dict)


def normalize_diagram(raw: Any) -> Optional[Diagram]:
	"""Accept any of the stored diagram shapes and return a Diagram or None."""
	if not isinstance(raw, dict):
		return None
	content = raw.get("content")
	if content and isinstance(content, str):
		return Diagram(type=str(raw.get("type") or "svg").lower(), content=content)
	svg = raw.get("svg")
	if svg and isinstance(svg, str):
		return Diagram(type="svg", content=svg)
	mermaid = raw.get("mermaid")
	if mermaid and isinstance(mermaid, str):
		return Diagram(type="mermaid", content=mermaid)
	code = raw.get("code")
	if code and isinstance(code, str):
		return Diagram(type=str(raw.get("type") or "svg").lower(), content=code)
	return None


def format_points(points: float) -> str:
	value = float(points)
	label = str(int(value)) if value.is_integer() else repr(value)
	return f"{label} point" if points == 1 else f"{label} points"


def format_export_date(due_date: Optional[datetime], today: Optional[date] = None) -> str:
	d = due_date or today or date.today()
	return f"{d:%B} {d.day}, {d.year}"


def export_filename(title: str) -> str:
	safe = _UNSAFE_FILENAME_RE.sub("", title or "")
	safe = _WHITESPACE_RE.sub("_", safe)[:60]
	return f"{safe}_latex.zip"


def _read_public_file(public_dir: Path, image_url: str) -> bytes:
	root = public_dir.resolve()
	resolved = (root / image_url.lstrip("/")).resolve()
	if resolved != root and root not in resolved.parents:
		raise ValueError("Invalid path")
	return resolved.read_bytes()


def _render_question(number: int, question: Any, public_dir: Path, files: Dict[str, bytes]) -> str:
	lines: List[str] = [
		f"\\noindent\\textbf{{Question {number}}} ({format_points(question.points)})\\\\\\\\\n",
		convert_to_latex(question.question_text),
		"",
	]

	if question.image_url:
		ext = os.path.splitext(question.image_url)[1] or ".png"
		image_name = f"q{number}-image{ext}"
		try:
			files[f"{IMAGES_DIR}/{image_name}"] = _read_public_file(public_dir, question.image_url)
		except (OSError, ValueError) as e:
			logger.warning("Image for question %d not exported (%s): %s", number, question.image_url, e)
			lines.append(f"% Image not found: {escape_latex(question.image_url)}")
		else:
			lines.append("")
			lines.append(
				f"\\begin{{center}}\n\\includegraphics[width=0.6\\textwidth]{{{image_name}}}\n\\end{{center}}"
			)
			lines.append("")

	diagram = normalize_diagram(question.diagram)
	if diagram is not None:
		if diagram.type == "svg":
			svg_name = f"diagram-q{number}.svg"
			files[f"{IMAGES_DIR}/{svg_name}"] = diagram.content.encode("utf-8")
			lines.append("")
			lines.append(
				f"\\begin{{center}}\n\\includesvg[width=0.6\\textwidth]{{{IMAGES_DIR}/{svg_name}}}\n\\end{{center}}"
			)
			lines.append("")
		elif diagram.type == "mermaid":
			lines.append("")
			lines.append("% [Mermaid diagram \\textemdash{} see online version]")
			lines.append("")

	if question.question_type == "MC" and isinstance(question.options, list) and question.options:
		lines.append("\\begin{enumerate}[(A)]")
		for option in question.options:
			lines.append(f"  \\item {convert_to_latex(str(option))}")
		lines.append("\\end{enumerate}")
		lines.append("")

	if question.correct_answer:
		lines.append(f"\\textbf{{Answer:}} {convert_to_latex(question.correct_answer)}")
		lines.append("")

	lines.append("\\bigskip\\hrule\\bigskip")
	return "\n".join(lines)


def build_assignment_bundle(
	assignment: Any,
	questions: Iterable[Any],
	public_dir: Path | str,
	*,
	today: Optional[date] = None,
) -> LatexBundle:
	"""Render an assignment and its questions into a standalone LaTeX document.

	Questions are numbered in the order given. Missing or out-of-tree images
	are replaced by a LaTeX comment so the export never fails on them.
	"""
	public_dir = Path(public_dir)
	questions = list(questions)
	files: Dict[str, bytes] = {}

	title = escape_latex(assignment.title)
	export_date = escape_latex(format_export_date(assignment.due_date, today))

	diagrams = [normalize_diagram(q.diagram) for q in questions]
	has_svg = any(d is not None and d.type == "svg" for d in diagrams)
	blocks = [_render_question(i, q, public_dir, files) for i, q in enumerate(questions, start=1)]

	packages = list(BASE_PACKAGES)
	if has_svg:
		packages.append("\\usepackage{svg}")
	packages.extend(TRAILING_PACKAGES)

	package_lines = "\n".join(packages)
	question_blocks = "\n\n".join(blocks)
	tex = (
		"\\documentclass[12pt]{article}\n"
		f"{package_lines}\n"
		"\\graphicspath{{./images/}}\n"
		"\n"
		"\\pagestyle{fancy}\n"
		"\\fancyhf{}\n"
		"\\rhead{\\thepage}\n"
		f"\\lhead{{{title}}}\n"
		f"\\title{{{title}}}\n"
		f"\\date{{{export_date}}}\n"
		"\n"
		"\\begin{document}\n"
		"\\maketitle\n"
		"\n"
		f"{question_blocks}\n"
		"\n"
		"\\end{document}\n"
	)
	return LatexBundle(tex=tex, files=files)


def package_bundle(bundle: LatexBundle) -> bytes:
	buf = io.BytesIO()
	with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
		zf.writestr(TEX_FILENAME, bundle.tex)
		for name, data in bundle.files.items():
			zf.writestr(name, data)
	return buf.getvalue()
