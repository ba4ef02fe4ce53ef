"""
IELTS Center - scoring and submission backend for IELTS tests and quizzes.
"""

__version__ = "1.0.0"
