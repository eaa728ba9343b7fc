"""
Profile Service Test Suite

Tests are organized into:
- unit/: Schemas, repository, service and notification components
- integration/: HTTP API against an in-memory database
"""
