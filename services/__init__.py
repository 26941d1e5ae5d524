"""
Service layer for explorer APIs, chain RPC, secrets and the Lit network.

This module provides abstraction over external APIs and SDKs,
separating request handling from infrastructure concerns.
"""
