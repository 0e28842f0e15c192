"""
Service layer.

``UserService`` is the credential store; ``QueryService`` and
``MutationService`` implement the named operations on top of it, and
``CatalogService`` talks to the upstream book catalog.  API handlers
only call into these classes.
"""
