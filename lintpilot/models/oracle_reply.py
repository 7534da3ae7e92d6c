"""
Oracle Reply Model
==================
Uniform result of one oracle call, whatever the provider.

Fields:
    success     — True if a payload exposing the expected fields was found
    data        — the normalized payload (dict) on success
    error       — failure description (timeout, malformed reply, error envelope)
    session_id  — conversation handle returned by the provider, if any
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel


class OracleReply(BaseModel):
    success: bool = False
    data: Optional[Dict[str, Any]] = None
    error: str = ""
    session_id: Optional[str] = None
