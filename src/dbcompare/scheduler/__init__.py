"""
Comparison scheduler module

Provides cron-like scheduling of comparison runs using APScheduler.
"""

from .jobs import compare_job_wrapper
from .scheduler import ComparisonScheduler

__all__ = [
    'ComparisonScheduler',
    'compare_job_wrapper',
]
