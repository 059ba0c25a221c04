"""
Runtime Models

State kept by the running service that is not part of any DID document.

Key Models:
- health.py: HealthGauge, the failure pressure gauge behind /internal/ready
"""
