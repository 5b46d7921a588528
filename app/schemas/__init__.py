"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models: Internal data structures (app.models)
- Schemas: API contract (what client sends/receives)
"""
