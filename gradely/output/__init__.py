"""
Report Output Module.

Renders offering results as JSON, CSV or HTML.
"""

from gradely.output.report import ReportFormat, ReportGenerator

__all__ = [
    "ReportFormat",
    "ReportGenerator",
]
