"""API blueprints for the sprint exporter"""

from sprint_exporter.api.sprint import sprint_bp

__all__ = ['sprint_bp']
