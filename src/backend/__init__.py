"""
Signet - Document e-signing backend
===================================

FastAPI backend that lets workspace owners send documents for signature and
lets signers complete them through unguessable, single-use links.

Key Features:
    - **Signing Links**: Idempotent per-contact link issuance with optional expiry
    - **Public Signing Page**: Token-resolved, read-only document view for signers
    - **Field Submission**: Type-aware validation with atomic, once-only completion
    - **Notifications**: Pluggable transports for signing-request emails
    - **Type Safety**: Pydantic runtime validation on every request and response
    - **Enterprise Logging**: Structured JSON logs with rotation and token masking

Modules:
    api: FastAPI routes, services, middleware and dependency wiring
    core: Configuration constants and settings
    models: Pydantic schemas, domain records and error models
    utils: Logging, database helpers and field validation

Architecture:
    Owners authenticate with JWT bearer tokens and act inside their workspaces.
    Signers never authenticate: the signing token is the credential, so it is
    rate limited, masked in logs and invalidated once the document is signed.
"""
