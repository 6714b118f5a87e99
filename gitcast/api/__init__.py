"""Falcon ASGI HTTP API for gitcast.

Usage
-----
Create the application::

    from gitcast.api.app import create_app

    app = create_app()
"""
