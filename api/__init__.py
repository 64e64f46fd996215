"""
FastAPI RESTful API for the Library Book catalog.

This module provides a REST API for:
- Creating books with validated fields and unique ISBNs
- Paginated book listing and lookup by ID
- Partial book updates
- Book deletion
"""
