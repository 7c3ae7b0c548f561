"""Markdown + math text to LaTeX conversion.

Math regions ($...$ and $$...$$) are kept verbatim; everything else has its
LaTeX-reserved characters escaped and a small subset of Markdown emphasis
rewritten into LaTeX commands.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

DISPLAY_DELIMITER = "$$"
INLINE_DELIMITER = "$"

# Order matters: the backslash must go first so later replacements are not re-escaped.
LATEX_ESCAPES: Tuple[Tuple[str, str], ...] = (
	("\\", "\\textbackslash{}"),
	("&", "\\&"),
	("%", "\\%"),
	("#", "\\#"),
	("_", "\\_"),
	("{", "\\{"),
	("}", "\\}"),
	("~", "\\textasciitilde{}"),
	("^", "\\textasciicircum{}"),
)

_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"\*(.+?)\*")
_PARAGRAPH_RE = re.compile(r"\n{2,}")
PARAGRAPH_BREAK = "\n\\bigskip\n"


@dataclass(frozen=True)
class Segment:
	text: str
	is_math: bool


def _find_inline_delimiter(text: str) -> int:
	# A lone "$": not escaped and not half of a "$$" pair
	for i, ch in enumerate(text):
		if ch != INLINE_DELIMITER:
			continue
		if i > 0 and text[i - 1] == "\\":
			continue
		if text[i + 1:i + 2] == INLINE_DELIMITER:
			continue
		return i
	return -1


def split_math_segments(text: str) -> List[Segment]:
	"""Partition text into ordered prose and math segments.

	Joining the segment texts always gives back the input. An opening
	delimiter without a matching close is kept as prose.
	"""
	segments: List[Segment] = []
	remaining = text or ""

	while remaining:
		display_idx = remaining.find(DISPLAY_DELIMITER)
		inline_idx = _find_inline_delimiter(remaining)

		delimiter: Optional[str] = None
		start = len(remaining)
		if display_idx != -1 and display_idx < start:
			delimiter = DISPLAY_DELIMITER
			start = display_idx
		if inline_idx != -1 and inline_idx < start:
			delimiter = INLINE_DELIMITER
			start = inline_idx

		if delimiter is None:
			segments.append(Segment(remaining, False))
			break

		if start > 0:
			segments.append(Segment(remaining[:start], False))

		close_idx = remaining.find(delimiter, start + len(delimiter))
		if close_idx == -1:
			segments.append(Segment(remaining[start:], False))
			break

		end = close_idx + len(delimiter)
		segments.append(Segment(remaining[start:end], True))
		remaining = remaining[end:]

	return segments


def escape_latex(text: str, escapes: Sequence[Tuple[str, str]] = LATEX_ESCAPES) -> str:
	"""Escape LaTeX-reserved characters (titles, dates, file names)."""
	if not text:
		return ""
	if not escapes:
		return text
	# Single pass: replacement text (e.g. the braces of \textbackslash{}) is never rescanned
	table = dict(escapes)
	pattern = re.compile("|".join(re.escape(char) for char, _ in escapes))
	return pattern.sub(lambda m: table[m.group(0)], text)


def convert_non_math_to_latex(text: str, escapes: Sequence[Tuple[str, str]] = LATEX_ESCAPES) -> str:
	result = escape_latex(text, escapes)
	result = _BOLD_RE.sub(lambda m: "\\textbf{" + m.group(1) + "}", result)
	result = _ITALIC_RE.sub(lambda m: "\\textit{" + m.group(1) + "}", result)
	result = _PARAGRAPH_RE.sub(lambda m: PARAGRAPH_BREAK, result)
	return result


def convert_to_latex(text: str, escapes: Sequence[Tuple[str, str]] = LATEX_ESCAPES) -> str:
	"""Convert Markdown text with embedded math to a LaTeX fragment."""
	if not text:
		return ""
	return "".join(
		segment.text if segment.is_math else convert_non_math_to_latex(segment.text, escapes)
		for segment in split_math_segments(text)
	)
