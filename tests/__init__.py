"""
Test suite for vPLC Collector.

This package contains unit tests for the bucket, delta and configuration
helpers and component tests that drive collectors against an in-process
fake vPLC.
"""
