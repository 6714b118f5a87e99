"""Health probe resources for liveness and readiness checks.

Usage
-----
Import health resources for route registration::

    from gitcast.api.health.resources import HealthResource, ReadyResource
"""
