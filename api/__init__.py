"""
FastAPI RESTful API for the Bookstore.

This module provides a REST API for:
- User registration and login with bearer tokens
- Book catalog browsing with filters and pagination
- Admin-only book creation, update and deletion
"""
