"""
Configuration: alias tables, status enums, thresholds, file paths.

Header alias tables map each canonical field name to the header spellings
seen in user workbooks. The first spelling is the display label used in
messages and exports.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths: adjust these if templates should be written elsewhere
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent

INSTRUMENT_TEMPLATE_FILE = "Instrument_Asset_Healthiness_Template.xlsx"
CAPEX_TEMPLATE_FILE = "CAPEX_Project_Template.xlsx"

# Leading rows scanned for the header row (title banners sit above it)
HEADER_SEARCH_ROWS = 10

DATE_DISPLAY_FORMAT = "%Y-%m-%d"

# ---------------------------------------------------------------------------
# Instrument healthiness domain
# ---------------------------------------------------------------------------
INSTRUMENT_AREAS = ("Ammonia", "Utility", "Urea", "System", "Turbomachinery")

INSTRUMENT_STATUSES = ("Healthy", "Caution", "Warning", "Unknown")
INSTRUMENT_STATUS_DEFAULT = "Unknown"

INSTRUMENT_ALIASES: dict[str, tuple[str, ...]] = {
    "equipment_type": ("Equipment Type", "Equip Type", "Type"),
    "tag_number": ("Tag Number", "Tag No", "Tag No.", "Tag"),
    "equipment_description": (
        "Equipment Description",
        "Description",
        "Equip Description",
    ),
    "status": ("Status", "Health", "Health Status"),
    "alarm_text": ("Alarm Description", "Alarm", "Alarm Text"),
    "rectification_text": ("Rectification", "Rectification Action", "Action"),
    "notification_date": ("Notification Date", "Notif Date", "Date"),
}

INSTRUMENT_REQUIRED_COLUMNS = (
    "equipment_type",
    "tag_number",
    "equipment_description",
    "status",
    "alarm_text",
    "rectification_text",
    "notification_date",
)

# Points per row status for the overall healthiness score.
# Unknown rows are excluded from the average entirely.
STATUS_SCORES: dict[str, int] = {
    "Healthy": 100,
    "Caution": 60,
    "Warning": 20,
    "Unknown": 0,
}

# Lower bound (inclusive) of each score band, highest first
SCORE_LABELS: tuple[tuple[float, str], ...] = (
    (80.0, "Excellent"),
    (60.0, "Good"),
    (40.0, "Fair"),
)
SCORE_LABEL_FLOOR = "Poor"

INSTRUMENT_SEVERITY_RANK = {"Warning": 0, "Caution": 1, "Healthy": 2, "Unknown": 3}

# Alarm text marker for obsolete equipment (ALS = asset life status)
OBSOLESCENCE_MARKER = r"\bALS\b"

# ---------------------------------------------------------------------------
# CAPEX budget domain
# ---------------------------------------------------------------------------
CAPEX_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("ID", "Project ID"),
    "name": ("Name", "Project Name", "Project", "Title"),
    "wbs_number": ("WBS Number", "WBS", "WBS No"),
    "project_manager": ("Project Manager", "PM", "Manager"),
    "discipline": ("Discipline", "Area"),
    "original_budget": ("Original Budget", "Budget"),
    "contract_value": ("Contract Value",),
    "budget_transfer_in": ("Budget Transfer In", "Transfer In"),
    "budget_transfer_out": ("Budget Transfer Out", "Transfer Out"),
    "current_budget": ("Current Budget", "Approved Budget"),
    "actual_spend": ("Actual Spend", "Actual", "Paid", "Spent"),
    "planned_spend": ("Planned Spend", "Planned", "Committed"),
    "start_date": ("Start Date", "Start"),
    "end_date": ("End Date", "Finish Date", "End"),
    "vendor": ("Vendor", "Contractor"),
    "payment_terms": ("Payment Terms",),
    "project_status": ("Project Status", "Status"),
    "priority": ("Priority",),
    "remarks": ("Remarks", "Notes", "Comments"),
}

CAPEX_REQUIRED_COLUMNS = ("name",)

# Per-discipline status from utilization (actual / current budget)
BUDGET_STATUSES = ("Healthy", "Caution", "Overrun")

# Upper bounds (inclusive) for Healthy and Caution, in percent
UTILIZATION_THRESHOLDS = (80.0, 95.0)

BUDGET_SEVERITY_RANK = {"Overrun": 0, "Caution": 1, "Healthy": 2}

PROJECT_STATUSES = ("Active", "Planning", "Completed", "On Hold")
PROJECT_STATUS_DEFAULT = "Active"
PROJECT_STATUS_ALIASES = {
    "complete": "Completed",
    "done": "Completed",
    "closed": "Completed",
    "hold": "On Hold",
    "on-hold": "On Hold",
    "onhold": "On Hold",
    "ongoing": "Active",
    "on-going": "Active",
    "in progress": "Active",
    "new": "Planning",
    "planned": "Planning",
}

PRIORITIES = ("Critical", "High", "Medium", "Low")
PRIORITY_DEFAULT = "Medium"

# ---------------------------------------------------------------------------
# Filter & sort
# ---------------------------------------------------------------------------
SORT_OPTIONS = ("date-desc", "date-asc", "identifier-asc", "severity")
DEFAULT_SORT = "date-desc"
