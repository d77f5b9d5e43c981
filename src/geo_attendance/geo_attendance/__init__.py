"""Geo-fenced attendance package.

Feature modules (geofence, location, flow, attendance, ...) follow the same
layering: plain dataclass models, Protocol collaborators, services holding the
rules, and thin Flask controllers or an async client on the edges.
"""
