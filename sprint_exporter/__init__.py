"""Export Jira sprint issues and their subtasks to CSV"""

__version__ = "0.1.0"
