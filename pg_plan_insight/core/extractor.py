"""
Plan line extraction.
Turns a plan payload (fragment map, raw text or list of lines) into the ordered
plan lines used for tree construction, and captures the timing footer.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import PlanInputError

logger = logging.getLogger(__name__)

FRAGMENT_KEY_RE = re.compile(r'^QUERY[ _]PLAN_(\d+)$')
SEPARATOR_RE = re.compile(r'^[-=+\s]*$')
EXECUTION_TIME_RE = re.compile(r'Execution Time: ([\d.]+) ms')
PLANNING_TIME_RE = re.compile(r'Planning Time: ([\d.]+) ms')
PSQL_ROW_COUNT_RE = re.compile(r'^\(\d+ rows?\)$')

FOOTER_LABELS = ('Planning Time:', 'Execution Time:')
# Summary sections printed after the plan; their indented bodies are not plan details.
SUMMARY_SECTIONS = ('Planning:', 'JIT:')


@dataclass
class ExtractedPlan:
    # Lines eligible for node construction, indentation preserved.
    lines: List[str] = field(default_factory=list)
    # Every fragment in order, for the plain-text formatter.
    raw_lines: List[str] = field(default_factory=list)
    execution_time_ms: Optional[float] = None
    planning_time_ms: Optional[float] = None
    raw_text: Optional[str] = None


def fragment_entries(plan_data: Mapping[str, Any]) -> List[Tuple[int, Any]]:
    """Return (sequence number, value) pairs for fragment keys, sorted numerically."""
    entries = []
    for key, value in plan_data.items():
        match = FRAGMENT_KEY_RE.match(str(key))
        if match:
            entries.append((int(match.group(1)), value))
    entries.sort(key=lambda entry: entry[0])
    return entries


def is_separator(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and SEPARATOR_RE.match(stripped) is not None and len(stripped) >= 3


def _parse_float(pattern: re.Pattern, line: str) -> Optional[float]:
    match = pattern.search(line)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def _opaque(payload: Any) -> ExtractedPlan:
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    logger.debug("Plan payload has no line fragments; keeping it as raw text")
    return ExtractedPlan(raw_text=text)


def extract_lines(raw_lines: List[str]) -> ExtractedPlan:
    """Filter raw plan lines and capture the Planning/Execution Time footer."""
    plan = ExtractedPlan(raw_lines=list(raw_lines))
    in_summary = False
    for line in raw_lines:
        if not line.strip() or is_separator(line) or PSQL_ROW_COUNT_RE.match(line.strip()):
            continue
        if line.strip() in SUMMARY_SECTIONS:
            in_summary = True
            continue
        if in_summary and line[:1].isspace():
            continue
        in_summary = False
        if any(label in line for label in FOOTER_LABELS):
            if plan.execution_time_ms is None:
                plan.execution_time_ms = _parse_float(EXECUTION_TIME_RE, line)
            if plan.planning_time_ms is None:
                plan.planning_time_ms = _parse_float(PLANNING_TIME_RE, line)
            continue
        plan.lines.append(line)
    return plan


def extract_plan(plan_input: Any) -> ExtractedPlan:
    """
    Extract ordered plan lines from a plan payload.

    Accepts a mapping of ``QUERY PLAN_<n>`` fragments, raw EXPLAIN text, or a
    list of lines. Payloads holding a JSON plan object instead of fragments are
    returned as opaque ``raw_text`` with no lines.
    """
    if plan_input is None:
        raise PlanInputError("Plan input is missing")

    if isinstance(plan_input, str):
        stripped = plan_input.strip()
        if stripped.startswith(('{', '[')):
            try:
                decoded = json.loads(stripped)
            except json.JSONDecodeError:
                decoded = None
            if isinstance(decoded, dict) and fragment_entries(decoded):
                return extract_plan(decoded)
            if decoded is not None:
                return _opaque(plan_input)
        return extract_lines(plan_input.splitlines())

    if isinstance(plan_input, Mapping):
        if not plan_input:
            return ExtractedPlan()
        entries = fragment_entries(plan_input)
        if not entries:
            return _opaque(dict(plan_input))
        # Gaps and non-text fragments are skipped.
        lines = [value for _, value in entries if isinstance(value, str)]
        return extract_lines(lines)

    if isinstance(plan_input, (list, tuple)):
        return extract_lines([line for line in plan_input if isinstance(line, str)])

    raise PlanInputError(f"Unsupported plan input type: {type(plan_input).__name__}")


def split_fragments(text: str, key_format: str = 'QUERY PLAN_{}') -> Dict[str, str]:
    """Build a fragment map from raw EXPLAIN text, numbering lines from 1."""
    return {key_format.format(n): line for n, line in enumerate(text.splitlines(), start=1)}
