"""
Description schemas — Gemini product description rewrite.
Version: 1.0.0
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductContext(BaseModel):
    name: str
    image_analysis: Optional[str] = None
    brand_guidelines: Optional[str] = None


class ReengineerRequest(BaseModel):
    original_description: str = Field(..., min_length=1)
    user_prompt: str = Field(..., min_length=1, description="Creative direction for the rewrite")
    product_context: ProductContext


class ReengineerResponse(BaseModel):
    reengineered_description: str
    reasoning: str
    changes: List[str] = Field(default_factory=list)
