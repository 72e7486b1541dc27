# backend/app/__init__.py
"""
Push Notification Relay backend application package.

This package contains:
- main: FastAPI application entrypoint
- notifications: Firebase Cloud Messaging relay (config, client, service, router)
- utils: environment variable and process helpers
"""
