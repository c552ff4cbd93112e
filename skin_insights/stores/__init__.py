"""
skin_insights.stores — Collaborator interfaces and JSON-file adapters.

The engine itself holds no persistent state besides the explanation cache.
Catalog data, assessment history, raw model output and persisted results all
come from (or go to) host-owned collaborators described here as protocols.

Modules:
  protocols  — ``CatalogStore``, ``HistoricalStore``, ``ModelRunner``,
               ``PersistenceSink`` interfaces.
  json_store — File-backed implementations used by the CLI and tests.
"""
