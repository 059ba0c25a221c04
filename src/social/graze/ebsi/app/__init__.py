"""
Resolver Application Layer

This package exposes the did:ebsi resolver over HTTP using the aiohttp framework.

Key Components:
- cli.py: Entry point for running the server, including logging configuration
- server.py: Web application setup, start-up/shutdown and middleware
- config.py: Configuration management using Pydantic settings
- metrics.py: Metrics abstraction (Telegraf/StatsD or no-op)
- tasks.py: Background tasks
- handlers/: Request handlers

Endpoints:
- GET /1.0/identifiers/{did}: Resolve a DID to its document
- GET /internal/alive: Liveness probe
- GET /internal/ready: Readiness probe backed by the health gauge
"""
