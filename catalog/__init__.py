"""
Catalog package for the Library Book API.

This package contains:
- Book entity and request/response models
- Request validation
- Entity/response mapping
- Book service (business rules)
- MongoDB repository
- Seed data loading
"""

__version__ = "1.0.0"
__author__ = "Library Book API"
