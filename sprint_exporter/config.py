"""Centralized configuration for the sprint exporter"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# =============================================================================
# Base Paths
# =============================================================================

BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"
EXPORTS_DIR = DATA_DIR / "exports" / "sprints"


# =============================================================================
# JIRA Configuration
# =============================================================================

# JIRA instance URL and credentials
JIRA_BASE_URL = os.getenv("JIRA_BASE_URL", "")
JIRA_EMAIL = os.getenv("JIRA_EMAIL")
JIRA_API_TOKEN = os.getenv("JIRA_API_TOKEN")

# Seconds to wait on each request
REQUEST_TIMEOUT = float(os.getenv("JIRA_REQUEST_TIMEOUT", "30"))

# API endpoints
SPRINT_ENDPOINT = "/rest/agile/1.0/sprint/{sprint_id}"
SPRINT_ISSUES_ENDPOINT = "/rest/agile/1.0/sprint/{sprint_id}/issue"
SEARCH_ENDPOINT = "/rest/api/3/search/jql"

# Search results are capped; larger sprints are truncated
SEARCH_MAX_RESULTS = 100
SEARCH_FIELDS = ["summary", "parent"]
SEARCH_EXPAND = ["subtasks"]

# Marker separating the site URL from the REST path in "self" links
API_PATH_MARKER = "/rest"


# =============================================================================
# Export Configuration
# =============================================================================

CSV_HEADER = ["Ticket ID", "Parent Ticket ID", "Ticket URL", "Ticket Title"]
CSV_CONTENT_TYPE = "text/csv; charset=utf-8"
EXPORT_FILENAME = "sprint_{sprint_id}_export.csv"
