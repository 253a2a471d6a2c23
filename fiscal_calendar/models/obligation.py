"""Obligation models for the fiscal calendar."""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

SPHERES = ("Federal", "Estadual", "Municipal")


class ObligationFields(BaseModel):
    """Editable fields of an obligation, as filled in by the admin form."""
    title: str = Field(default="", description="Display text")
    date: str = Field(default="", description="Due date as YYYY-MM-DD")
    sphere: str = Field(default="Federal", description="Federal, Estadual or Municipal")

    def is_complete(self) -> bool:
        return bool(self.title) and bool(self.date)


class Obligation(BaseModel):
    """A fiscal due-date record."""
    id: str = Field(..., alias="_id")
    title: str = ""
    date: str = Field("", description="Due date as YYYY-MM-DD, never parsed")
    sphere: Optional[str] = None

    class Config:
        populate_by_name = True
        from_attributes = True

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Obligation":
        return cls(
            id=str(doc.get("_id", "")),
            title=doc.get("title") or "",
            date=doc.get("date") or "",
            sphere=doc.get("sphere"),
        )
