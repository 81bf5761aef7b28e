"""Sinks that consume a finished scan report: the index store and the webhook."""
