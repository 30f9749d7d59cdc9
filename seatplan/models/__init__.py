"""
Database models package
"""

from .plan import Plan

__all__ = ["Plan"]
