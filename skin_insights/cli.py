"""
Skin Insights engine — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load inputs through the JSON-file stores.
  4. Run the engine operation.
  5. Report the result to stdout and optionally write it to a file.

Install and run::

    pip install -e .
    skin-insights --help
    skin-insights validate-config
    skin-insights normalize --input data/model_output.json --save
    skin-insights recommend --explain --top 3
    skin-insights compare --baseline a1 --current a2
    skin-insights timeline --range 90d
"""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="skin-insights",
    help="Skin Insights personalization engine: assessments, recommendations and progress.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from skin_insights.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from skin_insights.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_history_or_exit(path: Path, user_id: Optional[str] = None):
    from skin_insights.stores.json_store import JsonHistoricalStore

    if not path.exists():
        typer.echo(f"[ERROR] History file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        return JsonHistoricalStore(path).list_assessments(user_id=user_id)
    except ValueError as exc:
        typer.echo(f"[ERROR] Could not read history: {exc}", err=True)
        raise typer.Exit(code=1)


def _find_or_exit(assessments, assessment_id: str):
    for a in assessments:
        if a.assessment_id == assessment_id:
            return a
    typer.echo(f"[ERROR] Assessment '{assessment_id}' not found in history.", err=True)
    raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Catalog file:       {config.data.catalog_file}")
    typer.echo(f"  History file:       {config.data.history_file}")
    typer.echo(f"  Top per category:   {config.recommendations.top_per_category}")
    typer.echo(f"  Explanation TTL:    {config.explanations.ttl_days} days")
    typer.echo(f"  Generator enabled:  {config.explanations.generator_enabled}")
    typer.echo(f"  Timeline range:     {config.progress.default_range}")
    typer.echo(f"  Log level:          {config.logging.level}")
    typer.echo(f"  Debug mode:         {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("normalize")
def normalize_cmd(
    input_path: Optional[str] = typer.Option(
        None,
        "--input",
        help="Raw model output JSON; omit (or point at a missing file) for the fallback.",
    ),
    assessment_id: Optional[str] = typer.Option(None, "--assessment-id", help="Explicit id."),
    user_id: Optional[str] = typer.Option(None, "--user", help="Owner of the assessment."),
    save: bool = typer.Option(False, "--save", help="Append the assessment to the history file."),
    history_path: Optional[str] = typer.Option(None, "--history", help="Override history file."),
    output: Optional[str] = typer.Option(None, "--output", help="Write the assessment JSON here."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Normalize raw model output into a skin assessment."""
    from skin_insights.analysis.normalizer import normalize
    from skin_insights.reporting.export import export_to_json
    from skin_insights.reporting.formatters import format_assessment
    from skin_insights.stores.json_store import JsonHistoricalStore, JsonModelRunner

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    raw = None
    if input_path:
        try:
            raw = JsonModelRunner(Path(input_path)).run()
        except ValueError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)

    assessment = normalize(raw, assessment_id=assessment_id, user_id=user_id)
    typer.echo(format_assessment(assessment))

    if save:
        target = Path(history_path or config.data.history_file)
        JsonHistoricalStore(target).save_assessments([assessment])
        typer.echo(f"\n  Saved to {target}")
    if output:
        export_to_json(assessment.model_dump(mode="json"), Path(output))
        typer.echo(f"  Written to {output}")


@app.command("recommend")
def recommend(
    assessment_id: Optional[str] = typer.Option(
        None,
        "--assessment-id",
        help="Assessment to score against (default: latest in history).",
    ),
    top: Optional[int] = typer.Option(None, "--top", min=0, help="Items per category."),
    explain: bool = typer.Option(False, "--explain", help="Add an explanation per item."),
    catalog_path: Optional[str] = typer.Option(None, "--catalog", help="Override catalog file."),
    history_path: Optional[str] = typer.Option(None, "--history", help="Override history file."),
    output: Optional[str] = typer.Option(None, "--output", help="Write recommendations JSON here."),
    csv_path: Optional[str] = typer.Option(None, "--csv", help="Write a flat CSV here."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Rank the catalog for an assessment, grouped by category."""
    from skin_insights.explanations.coordinator import ExplanationCoordinator
    from skin_insights.explanations.generator import build_generator
    from skin_insights.recommendations.ranker import order_categories, rank
    from skin_insights.reporting.export import (
        RECOMMENDATION_CSV_COLUMNS,
        export_to_csv,
        export_to_json,
        flatten_recommendations_for_export,
        ranked_to_dict,
    )
    from skin_insights.reporting.formatters import format_recommendations
    from skin_insights.stores.json_store import load_catalog

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    history = _load_history_or_exit(Path(history_path or config.data.history_file))
    if not history:
        typer.echo("[ERROR] History is empty; run 'normalize --save' first.", err=True)
        raise typer.Exit(code=1)
    assessment = _find_or_exit(history, assessment_id) if assessment_id else history[-1]

    try:
        catalog = load_catalog(Path(catalog_path or config.data.catalog_file))
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    n = config.recommendations.top_per_category if top is None else top
    ranked = rank(assessment, catalog, top_per_category=n)
    order = order_categories(ranked.by_category, config.recommendations.categories)

    explanations: dict[str, str] = {}
    if explain:
        generator = build_generator(config.explanations)
        timeout = config.explanations.wait_timeout_seconds if generator else None
        shown = [rec for cat in order for rec in ranked.category(cat)]
        coordinator = ExplanationCoordinator(ttl=timedelta(days=config.explanations.ttl_days))
        try:
            explanations = coordinator.explain_all(assessment, shown, generator, timeout)
        finally:
            # The cache dies with this process; a request already in flight is
            # still bounded by request_timeout_seconds at interpreter exit.
            coordinator.close(wait=False, cancel_pending=True)

    typer.echo(format_recommendations(ranked, order, explanations))

    report = ranked_to_dict(ranked, order, explanations)
    if output:
        export_to_json(report, Path(output))
        typer.echo(f"\n  Written to {output}")
    if csv_path:
        export_to_csv(
            flatten_recommendations_for_export(report),
            Path(csv_path),
            fieldnames=RECOMMENDATION_CSV_COLUMNS,
        )
        typer.echo(f"  CSV written to {csv_path}")


@app.command("compare")
def compare_cmd(
    baseline_id: str = typer.Option(..., "--baseline", help="Earlier assessment id."),
    current_id: str = typer.Option(..., "--current", help="Later assessment id."),
    history_path: Optional[str] = typer.Option(None, "--history", help="Override history file."),
    output: Optional[str] = typer.Option(None, "--output", help="Write comparison JSON here."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Compare two assessments from the history."""
    from skin_insights.progress.comparison import compare
    from skin_insights.reporting.export import comparison_to_dict, export_to_json
    from skin_insights.reporting.formatters import format_comparison

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    history = _load_history_or_exit(Path(history_path or config.data.history_file))
    baseline = _find_or_exit(history, baseline_id)
    current = _find_or_exit(history, current_id)

    result = compare(baseline, current)
    typer.echo(format_comparison(result))

    if output:
        export_to_json(comparison_to_dict(result), Path(output))
        typer.echo(f"\n  Written to {output}")


@app.command("timeline")
def timeline_cmd(
    date_range: Optional[str] = typer.Option(
        None,
        "--range",
        help="Look-back window: 7d, 30d, 90d or all (default from config).",
    ),
    user_id: Optional[str] = typer.Option(None, "--user", help="Only this user's assessments."),
    history_path: Optional[str] = typer.Option(None, "--history", help="Override history file."),
    output: Optional[str] = typer.Option(None, "--output", help="Write timeline JSON here."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Summarize health and concern trends over a date window."""
    from skin_insights.progress.timeline import summarize
    from skin_insights.reporting.export import export_to_json, timeline_to_dict
    from skin_insights.reporting.formatters import format_timeline
    from skin_insights.utils.time_utils import DateRange

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        window = DateRange(date_range or config.progress.default_range)
    except ValueError:
        valid = ", ".join(r.value for r in DateRange)
        typer.echo(f"[ERROR] Invalid --range '{date_range}'. Use one of: {valid}.", err=True)
        raise typer.Exit(code=1)

    history = _load_history_or_exit(Path(history_path or config.data.history_file), user_id)
    series = summarize(
        history,
        date_range=window,
        min_assessments=config.progress.min_scans_for_timeline,
    )
    typer.echo(format_timeline(series))

    if output:
        export_to_json(timeline_to_dict(series), Path(output))
        typer.echo(f"\n  Written to {output}")


if __name__ == "__main__":
    app()
