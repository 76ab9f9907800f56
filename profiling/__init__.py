"""
Profiling Assessment - Proctored Psychometric Assessment Service

Generates personalized aptitude, behavioral and domain questions in the
background, scores submissions, synthesizes candidate reports and keeps a
per-session proctoring ledger.
"""

__version__ = "0.1.0"
__author__ = "Profiling Assessment Team"
