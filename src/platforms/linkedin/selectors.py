"""LinkedIn alert-email selector constants with fallbacks.

Each constant is a tuple so callers iterate until a match is found.
"""

# --- Job card container ---
CARD_SELECTORS: tuple[str, ...] = (
    'td[data-test-id="job-card"]',
    '[data-test-id="job-card"]',
)

# --- Marker present in every job-view href ---
JOB_VIEW_MARKER: str = "jobs/view"

# --- Links pointing at the posting ---
JOB_LINK_SELECTOR: str = f'a[href*="{JOB_VIEW_MARKER}"]'

# --- Bold title link (jobalerts-noreply format first) ---
BOLD_TITLE_LINK_SELECTORS: tuple[str, ...] = (
    f'a.font-bold[href*="{JOB_VIEW_MARKER}"]',
    f'a[href*="{JOB_VIEW_MARKER}"][style*="font-weight: bold"]',
    f'a[href*="{JOB_VIEW_MARKER}"][style*="font-weight:bold"]',
    f'a[href*="{JOB_VIEW_MARKER}"][style*="font-weight: 700"]',
)

# --- Heading-like title fallbacks, in priority order ---
HEADING_TITLE_SELECTORS: tuple[str, ...] = (
    "h3",
    "h4",
    '[data-test-id="job-title"]',
)

# --- Company logo ---
COMPANY_IMAGE_SELECTOR: str = "img[alt]"

# Alt texts that are badges, not company names (compared case-insensitively)
COMPANY_ALT_PLACEHOLDERS: tuple[str, ...] = ("premium",)

# --- "Company · Location" paragraph ---
LOCATION_PARAGRAPH_SELECTOR: str = "p"
LOCATION_SEPARATOR: str = "·"

# --- Values used when a field cannot be found ---
UNKNOWN_TITLE: str = "Unknown Title"
UNKNOWN_COMPANY: str = "Unknown Company"

# Minimum length for link/heading text to count as a title
MIN_TITLE_LENGTH: int = 3
