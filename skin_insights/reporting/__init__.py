"""
skin_insights.reporting — Output serialization, terminal formatting and export.

Modules:
  export     — Result -> JSON-ready dicts, CSV/JSON flat-file export helpers.
  formatters — ASCII terminal formatters for Typer CLI commands.
"""
