"""Domain layer: graph model, reconciliation engine, ports."""
