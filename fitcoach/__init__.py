"""fitcoach.

Backend service for a consumer fitness-coaching application: workout programs,
progress tracking, subscription billing, articles and a support chat.

High-level architecture
-----------------------

The codebase separates pure coaching rules from the web and persistence layers:

- ``fitcoach.core``:

  - Rule modules with no I/O: entitlement and trial evaluation
    (``access``), the subscription catalog (``plans``), exercise progression
    (``progression``), XP levels (``levels``), booking availability
    (``slots``), the coaching calendar (``workweek``) and exercise
    prescriptions (``program``).
  - Logging, monitoring, domain errors and the localized message catalog.
  - The SQLModel persistence layer under ``fitcoach.core.database``.

- ``fitcoach.clients``:

  - Thin ``httpx`` clients for the hosted auth service, the payment provider
    and the forms/email delivery API.

- ``fitcoach.server``:

  - The FastAPI application, route guards, services and API routers.

Typical workflow
----------------

1. A request arrives with a bearer token; ``server.services.auth`` resolves the
   user and their profile.
2. A route guard evaluates entitlements via ``core.access``.
3. The router delegates to a service, which uses repositories and clients.
4. Domain errors are rendered as localized JSON by the exception handlers.
"""
