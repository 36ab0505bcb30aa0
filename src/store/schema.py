"""Layout of the job tracking spreadsheet."""

from src.core.schemas import JobStatus

# Column indices (0-based) in the Jobs sheet
JOB_ID = 0
STATUS = 1
DATE_ADDED = 2
DATE_MODIFIED = 3
PROBABILITY = 4
PRIMARY_SCORE = 5
PRIMARY_ARGUMENT = 6
SECONDARY_SCORE = 7
SECONDARY_ARGUMENT = 8
JOB_TITLE = 9
COMPANY = 10
LOCATION = 11
URL = 12
REQUIREMENTS_MET = 13
REQUIREMENTS_TOTAL = 14
REQUIREMENTS_GAPS = 15
NOTES = 16

COLUMN_HEADERS: tuple[str, ...] = (
    "job_id",
    "status",
    "date_added",
    "date_modified",
    "probability",
    "primary_score",
    "primary_argument",
    "secondary_score",
    "secondary_argument",
    "job_title",
    "company",
    "location",
    "url",
    "requirements_met",
    "requirements_total",
    "requirements_gaps",
    "notes",
)

TOTAL_COLUMNS = len(COLUMN_HEADERS)

JOB_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in JobStatus)

# Ignore-list column (0-based) and its header in the config sheet
IGNORED_COMPANIES_COLUMN = 1
IGNORED_COMPANIES_HEADER = "ignored_companies"

# Background / text colours used for conditional formatting of the status column
STATUS_COLORS: dict[JobStatus, tuple[str, str]] = {
    JobStatus.NEW: ("#E3F2FD", "#1565C0"),
    JobStatus.LOW_MATCH: ("#FFF9C4", "#F57F17"),
    JobStatus.NOT_AVAILABLE: ("#CFD8DC", "#37474F"),
    JobStatus.READ: ("#F5F5F5", "#616161"),
    JobStatus.INTERESTED: ("#E8F5E9", "#2E7D32"),
    JobStatus.NOT_INTERESTED: ("#FFEBEE", "#C62828"),
    JobStatus.APPLIED: ("#FFF3E0", "#E65100"),
    JobStatus.INTERVIEW_SCHEDULED: ("#F3E5F5", "#7B1FA2"),
    JobStatus.DECLINED: ("#ECEFF1", "#455A64"),
    JobStatus.ACCEPTED: ("#C8E6C9", "#1B5E20"),
}

FORMULA_INJECTION_CHARS = frozenset("=+-@")


def sanitize_cell_value(value: str) -> str:
    """Neutralise values a spreadsheet would evaluate as a formula."""
    if value and value[0] in FORMULA_INJECTION_CHARS:
        return f"'{value}"
    return value


def column_letter(index: int) -> str:
    """0-based column index to A1 letters (0 -> A, 26 -> AA)."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


LAST_COLUMN = column_letter(TOTAL_COLUMNS - 1)


def cell_range(sheet: str, row: int, first_col: int, last_col: int | None = None) -> str:
    """A1 range for part of a single row, e.g. ``Jobs!J5:M5``."""
    start = f"{column_letter(first_col)}{row}"
    if last_col is None or last_col == first_col:
        return f"{sheet}!{start}"
    return f"{sheet}!{start}:{column_letter(last_col)}{row}"


def rows_range(sheet: str, first_row: int, last_row: int) -> str:
    """A1 range covering full-width rows ``first_row..last_row``."""
    return f"{sheet}!A{first_row}:{LAST_COLUMN}{last_row}"


def cell(row: list[str], index: int) -> str:
    """Value at ``index`` of a sheet row; short rows read as ""."""
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""
