"""
Domain layer for diploma issuing business logic.

This layer contains:
- Data models (type-safe structures)
- Error taxonomy (error kinds mapped to HTTP status codes)
- Business logic (captcha -> generate -> email pipeline)
"""
