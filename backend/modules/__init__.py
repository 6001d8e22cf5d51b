"""
Feature modules for the VegasVault backend.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the module's public API
- models.py: Pydantic models for data transfer
- exceptions.py: Module-specific exceptions
- service.py / reconciler.py / sync.py: Implementation
- routes.py: FastAPI route handlers, where the module has an HTTP surface

Modules communicate through interfaces, not concrete implementations.
"""
