"""Domain layer: model, ports and the import reconciliation engine."""
