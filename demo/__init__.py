"""
jsonwrap demo service.

A FastAPI application whose endpoints return values of a foreign type
(ForeignType) in the three supported wrapper shapes:
- Foreign[ForeignType]
- Foreign[Optional[ForeignType]]
- Optional[Foreign[ForeignType]]

The generated document is served at /spec.json and browsable at /docs.

Usage:
    uvicorn demo.app:app --port 3000
"""
