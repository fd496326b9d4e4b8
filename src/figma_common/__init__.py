"""Shared plumbing: correlation ids, error types, telemetry and tool instrumentation."""
