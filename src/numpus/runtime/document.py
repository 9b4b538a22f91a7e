"""
Whole-document evaluation.

Evaluates every line of a document in order against one evaluator and
collects a per-line outcome, the way an editor shows one result beside
each line. Unlike parse_document, a malformed line only affects itself.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..ast import Comment
from ..errors import ErrorKind
from ..parser import document_lines, parse_line
from .values import CalculationResult
from .interpreter import Evaluator

logger = logging.getLogger(__name__)

STATUS_READY = "Ready"
STATUS_SUCCESS = "Evaluated successfully"


@dataclass(frozen=True)
class LineResult:
    """Outcome for one document line (1-based line number)."""
    line: int
    text: str = ""
    display: str = ""
    has_error: bool = False
    is_comment: bool = False
    result: Optional[CalculationResult] = None

    @property
    def is_blank(self) -> bool:
        return self.result is None and not self.is_comment and not self.has_error


@dataclass
class DocumentEvaluation:
    """Per-line results and a summary for a whole document."""
    results: List[LineResult] = field(default_factory=list)
    line_count: int = 0
    error_count: int = 0
    status: str = STATUS_READY

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0


def _status(error_count: int) -> str:
    if error_count:
        return f"{error_count} error(s) found"
    return STATUS_SUCCESS


def evaluate_document(text: str, evaluator: Optional[Evaluator] = None) -> DocumentEvaluation:
    """
    Evaluate a document line by line.

    The evaluator is cleared first so the outcome depends only on the text.
    Blank lines give empty entries, '#' lines give comment entries, lines
    that fail to parse give "Parse error: ..." entries, and every other
    line carries its evaluation result.
    """
    if evaluator is None:
        evaluator = Evaluator()
    evaluator.clear()

    if text is None or not text.strip():
        return DocumentEvaluation()

    evaluation = DocumentEvaluation()
    lines = document_lines(text)
    evaluation.line_count = len(lines)

    for line, raw_line in lines:
        if not raw_line.strip():
            evaluation.results.append(LineResult(line, raw_line))
            continue

        parsed = parse_line(raw_line, line)
        if not parsed.success:
            message = f"Parse error: {parsed.error}"
            evaluation.results.append(LineResult(
                line, raw_line, message, has_error=True,
                result=CalculationResult.from_error(message, ErrorKind.PARSE),
            ))
            evaluation.error_count += 1
            continue

        node = parsed.value
        if isinstance(node, Comment):
            evaluation.results.append(LineResult(line, raw_line, node.text, is_comment=True))
            continue

        result = evaluator.evaluate(node)
        if result.has_error:
            evaluation.error_count += 1
        evaluation.results.append(LineResult(
            line, raw_line, result.get_display_value(), has_error=result.has_error, result=result,
        ))

    evaluation.status = _status(evaluation.error_count)
    logger.debug("evaluated %d lines, %d error(s)", evaluation.line_count, evaluation.error_count)
    return evaluation
