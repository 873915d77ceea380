"""
FastAPI backend for repcoach.

Stateless transport for the evaluation engine: the client keeps the
SessionState and sends it back with every pose frame.
"""
