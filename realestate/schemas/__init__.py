"""
Real Estate API - Pydantic Schemas
===================================

API contracts (request bodies and response payloads). JSON keys are
camelCase; see schemas.common.CamelModel.
"""
