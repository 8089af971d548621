"""
Test suite for mdtask-sync.

This package contains:
- Unit tests for the task codec, sideband encoding, metadata and client
- Engine tests against an in-memory remote service
- End-to-end scenarios in tests/e2e
"""
