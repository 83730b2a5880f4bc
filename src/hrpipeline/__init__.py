"""Applicant lifecycle engine for a multi-role hiring pipeline."""

__version__ = "0.1.0"
