"""Authentication and authorization.

Learn: Three pieces, used in this order on every request:
1. middleware.authentication resolves `Authorization: Bearer <jwt>`
   into a CurrentIdentity on request.state (or leaves it unset)
2. auth.dependencies gives route handlers that identity, and rejects
   the request with 401 when a protected route has none
3. auth.ownership lets the task service refuse access to tasks the
   identity doesn't own (reported as 404)

Login itself (email/password → JWT) lives in services.auth_service.
"""
