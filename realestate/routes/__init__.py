# Routes package init
"""
Real Estate API - Routes Package
=================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - auth.py:        POST  /api/auth/login
    - owners.py:      POST  /api/owners
                      GET   /api/owners/{id}
    - properties.py:  GET   /api/properties
                      GET   /api/properties/{id}
                      POST  /api/properties
                      PUT   /api/properties/{id}
                      PATCH /api/properties/{id}/price
                      POST  /api/properties/{id}/images
                      GET   /api/properties/{id}/traces
    - health.py:      GET   /health

Design Principle:
    Routes are thin. They extract data from the request, enforce auth via
    dependencies, call PropertyService, and pick the status code. Failures
    propagate as exceptions to the global handlers in main.py.
"""
