"""
Schema Tester Test Suite.

This package contains:
- unit/: Unit tests (registry and CDN traffic mocked with respx)
- integration/: Playground HTTP API tests through FastAPI's TestClient
- fixtures/: A miniature zod-style library served as the CDN module
"""
