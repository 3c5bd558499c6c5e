from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from src.app.domain.models import Notice as DomainNotice


class Notice(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    duration: Optional[int] = None

    @classmethod
    def from_domain(cls, notice: Optional[DomainNotice]) -> Optional["Notice"]:
        if notice is None:
            return None
        return cls(
            title=notice.title,
            description=notice.description,
            variant=notice.variant.value,
            duration=notice.duration,
        )
