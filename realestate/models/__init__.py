"""
Real Estate API - ORM Models
=============================

Importing this package registers every mapped table on `Base.metadata`
(used by `Database.create_all()` and Alembic autogenerate).
"""

from realestate.models.owner import Owner
from realestate.models.property import Property
from realestate.models.property_image import PropertyImage
from realestate.models.property_trace import PropertyTrace

__all__ = ["Owner", "Property", "PropertyImage", "PropertyTrace"]
