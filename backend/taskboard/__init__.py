"""Application package for the Taskboard project-management backend.

This package exposes the service, repository and model modules used by
the FastAPI application: users, projects, lists and cards with audit
fields and soft deletes. Individual modules contain the concrete
implementations and documentation.
"""
