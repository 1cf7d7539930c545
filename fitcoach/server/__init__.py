"""
fitcoach Server Package.

This package contains the web server implementation for the fitcoach backend.
It includes the API definition, route guards, service logic, and configuration.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration, constants, and database dependencies.
    services: Business logic shared by the routers.
    middleware: Request tracing.
    exception_handlers: Localized error rendering.
"""
