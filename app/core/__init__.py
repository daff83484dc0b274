"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by every domain app. Nothing in here knows
about payments, events or memberships.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ConflictError: State conflicts (duplicates, invalid transitions)

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
"""
