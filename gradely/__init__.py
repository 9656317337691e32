"""
Gradely - grading core for lecturers.

This package turns per-assessment marks into bounded totals, letter
grades and pass/fail decisions, aggregates class statistics, and
persists marks behind a keyed upsert contract.
"""

__version__ = "1.0.0"
__author__ = "Gradely Team"
