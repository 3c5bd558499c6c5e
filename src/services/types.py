from dataclasses import dataclass, field
from typing import List, Literal, Optional


@dataclass
class RecipeDraft:
    """Unsaved recipe pre-filled from an imported or scraped link."""
    source: Literal["scraped", "imported"]
    source_url: str
    title: Optional[str]
    description: Optional[str] = None
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    image_url: Optional[str] = None
    author: Optional[str] = None
    platform: Optional[str] = None
