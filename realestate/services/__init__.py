# Services package init
"""
Real Estate API - Services Layer
=================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services receive an AsyncSession per call, apply business rules, and
       return Pydantic views. They never see Request or Response objects.

Service Inventory:
    - PropertyService: owners, properties, price history, images
    - UploadService:   bounded reading of multipart image uploads
    - version_token:   row version ↔ base64 token codec
"""
