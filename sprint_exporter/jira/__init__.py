"""JIRA sprint fetching and processing"""

from .jira_fetcher import JiraClient, SprintFetcher, build_jql
from .jira_processor import browse_url, build_filename, flatten_issues, issues_to_csv, parse_issue, render_csv
