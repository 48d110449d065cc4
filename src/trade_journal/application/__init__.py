"""Application layer: row normalization, reconciliation and import orchestration."""
