"""
app/schemas/gst_return.py

Purpose: GST return generation requests
"""

from pydantic import BaseModel, Field


class GenerateReturnRequest(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2017, le=2100)
