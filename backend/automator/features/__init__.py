"""
Feature modules for the activity automation backend.

Each feature is a self-contained module with some of:
- models.py - SQLAlchemy models
- schemas.py - Pydantic schemas
- types.py - Plain data types shared with collaborators
- repository.py - Data access
- service modules (queue.py, processor.py, estimator.py)
"""
