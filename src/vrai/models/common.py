"""
vrai/models/common.py — Base types of the Vrai domain.
"""

from pydantic import BaseModel


class VraiBase(BaseModel):
    """Base Pydantic model for Vrai schemas."""

    model_config = {"str_strip_whitespace": True}
