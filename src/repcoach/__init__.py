"""
repcoach: real-time exercise rep counting and form feedback from 2-D pose frames.
"""

__version__ = "1.0.0"
