"""
Project codes are issued per jurisdiction, e.g. RDC4-000001, RDC4-000002, RDC2-000001.
"""
import re
from typing import Iterable, Optional

PROJECT_CODE_PATTERN = re.compile(r"^(?P<identifier>[A-Z0-9]+)-(?P<sequence>\d{6,})$")
SEQUENCE_WIDTH = 6


def format_project_code(identifier: str, sequence: int) -> str:
    if sequence < 1:
        raise ValueError(f"Project sequence must be positive, got {sequence}")
    return f"{identifier}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(code: Optional[str], identifier: str) -> Optional[int]:
    """Return the sequence number of a code issued under identifier, otherwise None."""
    if not code:
        return None
    match = PROJECT_CODE_PATTERN.match(code)
    if match is None or match.group("identifier") != identifier:
        return None
    return int(match.group("sequence"))


def next_sequence(identifier: str, existing_codes: Iterable[Optional[str]], last_issued: int = 0) -> int:
    """
    One past the highest sequence ever issued under identifier.

    last_issued is the jurisdiction's stored counter. It outlives deleted projects,
    so their codes are not handed out again.
    """
    sequences = [s for s in (parse_sequence(code, identifier) for code in existing_codes) if s is not None]
    return max(max(sequences, default=0), last_issued) + 1


def next_project_code(identifier: str, existing_codes: Iterable[Optional[str]], last_issued: int = 0) -> str:
    return format_project_code(identifier, next_sequence(identifier, existing_codes, last_issued))
