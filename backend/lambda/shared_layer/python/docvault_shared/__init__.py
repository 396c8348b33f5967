"""docvault_shared — Shared utilities for the docvault Lambda functions.

Provides:
    - Immutable settings loaded once from the environment
    - Document catalog and access policy gate
    - Request validation and HTTP response helpers with CORS
    - Signed-URL issuing and upload ingestion over S3-compatible storage
    - SES-backed email relay for the contact form
"""

__version__ = "1.0.0"
