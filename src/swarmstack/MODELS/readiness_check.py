"""
Models for readiness probes.
"""
from pydantic import BaseModel


class ReadinessCheck(BaseModel):
    """
    An HTTPS health endpoint to poll until it returns the expected status.
    """
    endpoint: str
    expected_status: int = 200
    interval: float = 3.0
    attempts: int = 40
