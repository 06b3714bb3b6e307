"""
Bookshelf Test Suite

Tests are organized into:
- unit/: Query composer, validation and the two stores
- integration/: HTTP API over both stores
"""
