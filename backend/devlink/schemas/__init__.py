"""
DevLink Backend — Pydantic Request/Response Schemas
=====================================================

What:  The API contract between clients and this backend.
Why:   Strict input validation, automatic serialization, and OpenAPI doc
       generation. Kept separate from the ORM models so the wire format can
       change without a migration and internal columns are never exposed.
"""
