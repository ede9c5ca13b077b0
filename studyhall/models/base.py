"""
TenantModel — Abstract base class for library-scoped models.

All models that need tenant isolation inherit from TenantModel instead of
db.Model directly. This adds:
  - library_id FK column with index
  - to_money() for numeric → float normalisation in API payloads
"""

from studyhall.models import db


def to_money(value) -> float:
    """Normalise a stored monetary value to float; NULL becomes 0."""
    if value is None or value == "":
        return 0.0
    return float(value)


class TenantModel(db.Model):
    """Abstract base for library-scoped tables."""
    __abstract__ = True

    library_id = db.Column(
        db.Integer,
        db.ForeignKey("libraries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
