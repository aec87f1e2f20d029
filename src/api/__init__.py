"""HTTP API layer for the pension back office.

- **main**: application factory and lifespan (database check, webhook
  dispatcher startup and shutdown draining)
- **dependencies**: per-request assembly of the claim service and webhook
  registry
- **routes**: benefit claim and webhook subscription endpoints
- **middleware**: request context, request logging and exception handlers
- **schemas**: request/response models and the uniform error response
- **utils**: orjson response class

Handlers translate HTTP to domain calls and back; business rules live in
``src.domain``.
"""
