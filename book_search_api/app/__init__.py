"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Persistence, configuration and token handling live in
``core``, the operation logic in ``services`` and the HTTP surface in
``api/v1/endpoints``.

The ASGI application is built in ``main``; it is not imported here so
that scripts using only ``core`` or ``services`` do not trigger
application startup.
"""
