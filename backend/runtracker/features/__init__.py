"""
Feature modules for RunTracker.

Each feature is a self-contained module with:
- schemas.py - Pydantic schemas
- service.py / session.py - Business logic
- repository.py - Data access (optional)
"""
