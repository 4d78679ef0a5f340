"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks with no chat-specific logic.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, NotFoundError, PermissionDeniedError
    - ExternalServiceError: Failures talking to another service

Exception handler (core.exception_handlers):
    - api_exception_handler: DRF handler rendering the response envelope

Views (core.views):
    - health_check: Liveness/readiness endpoint
"""
