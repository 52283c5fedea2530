"""Host-facing plumbing: storage, notifications, configuration, logging and metrics."""
