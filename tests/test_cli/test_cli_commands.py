"""
Tests for skin_insights/cli.py via typer's CliRunner.

What we test
------------
- validate-config: success and missing-file error (exit 1).
- normalize: model output file -> assessment saved to history; no input ->
  fallback assessment.
- recommend: ranked JSON + CSV written; explanations fall back to templates
  when the generator is disabled; empty history is an error.
- compare / timeline: output and JSON export; invalid range is an error.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from skin_insights.cli import app
from skin_insights.stores.json_store import JsonHistoricalStore
from skin_insights.taxonomy.skin_taxonomy import ConcernKind

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> dict[str, Path]:
    for var in ("SKIN_INSIGHTS_GENERATOR_ENABLED", "SKIN_INSIGHTS_GENERATOR_URL"):
        monkeypatch.delenv(var, raising=False)
    catalog = tmp_path / "catalog.json"
    catalog.write_text(
        json.dumps(
            [
                {
                    "item_id": "gel",
                    "category": "TREATMENT",
                    "name": "Clear Gel",
                    "key_ingredients": ["SALICYLIC_ACID", "ZINC"],
                    "target_concerns": ["ACNE"],
                },
                {"item_id": "wash", "category": "CLEANSER", "name": "Soft Wash"},
                {"item_id": "gone", "category": "CLEANSER", "in_stock": False},
            ]
        ),
        encoding="utf-8",
    )
    history = tmp_path / "history.json"
    config = tmp_path / "config.toml"
    config.write_text(
        "[data]\n"
        f"catalog_file = '{catalog.as_posix()}'\n"
        f"history_file = '{history.as_posix()}'\n"
        "[logging]\nlevel = 'WARNING'\n",
        encoding="utf-8",
    )
    return {"root": tmp_path, "catalog": catalog, "history": history, "config": config}


def _seed_history(path: Path, make_assessment, fixed_now, severities: list[float]) -> None:
    JsonHistoricalStore(path).save_assessments(
        [
            make_assessment(
                {ConcernKind.ACNE: s},
                assessment_id=f"s{i}",
                captured_at=fixed_now - timedelta(days=len(severities) - 1 - i),
            )
            for i, s in enumerate(severities)
        ]
    )


class TestValidateConfig:
    def test_ok(self, workspace):
        result = runner.invoke(app, ["validate-config", "--config", str(workspace["config"])])
        assert result.exit_code == 0, result.output
        assert "[OK] Config is valid." in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output


class TestNormalize:
    def test_saves_assessment(self, workspace):
        raw = workspace["root"] / "raw.json"
        raw.write_text(
            json.dumps(
                {
                    "concern_scores": [0.1, 0.7, 0.0, 0.2, 0.0],
                    "skin_type_probs": [0, 0, 0, 0, 1, 0],
                    "model_version": "v9",
                }
            ),
            encoding="utf-8",
        )
        result = runner.invoke(
            app,
            ["normalize", "--input", str(raw), "--assessment-id", "scan-1", "--save",
             "--config", str(workspace["config"])],
        )
        assert result.exit_code == 0, result.output
        (saved,) = JsonHistoricalStore(workspace["history"]).list_assessments()
        assert saved.assessment_id == "scan-1"
        assert saved.skin_type == 5
        assert saved.primary_concerns == [ConcernKind.ACNE]

    def test_no_input_is_fallback(self, workspace):
        out = workspace["root"] / "a.json"
        result = runner.invoke(
            app, ["normalize", "--output", str(out), "--config", str(workspace["config"])]
        )
        assert result.exit_code == 0, result.output
        assert "[FALLBACK]" in result.output
        assert json.loads(out.read_text(encoding="utf-8"))["is_fallback"] is True


class TestRecommend:
    def test_writes_json_and_csv(self, workspace, make_assessment, fixed_now):
        _seed_history(workspace["history"], make_assessment, fixed_now, [0.6])
        out = workspace["root"] / "recs.json"
        csv_out = workspace["root"] / "recs.csv"
        result = runner.invoke(
            app,
            ["recommend", "--explain", "--output", str(out), "--csv", str(csv_out),
             "--config", str(workspace["config"])],
        )
        assert result.exit_code == 0, result.output

        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["assessment_id"] == "s0"
        assert list(report["categories"]) == ["CLEANSER", "TREATMENT"]
        gel = report["categories"]["TREATMENT"][0]
        assert "Salicylic Acid" in gel["explanation"]
        ids = [i["item_id"] for items in report["categories"].values() for i in items]
        assert "gone" not in ids

        with csv_out.open(encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert {r["item_id"] for r in rows} == {"gel", "wash"}

    def test_top_limits_groups(self, workspace, make_assessment, fixed_now):
        _seed_history(workspace["history"], make_assessment, fixed_now, [0.6])
        out = workspace["root"] / "recs.json"
        result = runner.invoke(
            app,
            ["recommend", "--top", "0", "--output", str(out), "--config", str(workspace["config"])],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8"))["categories"] == {}

    def test_unknown_assessment(self, workspace, make_assessment, fixed_now):
        _seed_history(workspace["history"], make_assessment, fixed_now, [0.6])
        result = runner.invoke(
            app, ["recommend", "--assessment-id", "zzz", "--config", str(workspace["config"])]
        )
        assert result.exit_code == 1

    def test_missing_history(self, workspace):
        result = runner.invoke(app, ["recommend", "--config", str(workspace["config"])])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output


class TestProgressCommands:
    def test_compare(self, workspace, make_assessment, fixed_now):
        _seed_history(workspace["history"], make_assessment, fixed_now, [0.6, 0.3])
        out = workspace["root"] / "cmp.json"
        result = runner.invoke(
            app,
            ["compare", "--baseline", "s0", "--current", "s1", "--output", str(out),
             "--config", str(workspace["config"])],
        )
        assert result.exit_code == 0, result.output
        assert "40 -> 70 (+30)" in result.output
        assert json.loads(out.read_text(encoding="utf-8"))["overall_delta"] == 30

    def test_timeline_improving(self, workspace, make_assessment, fixed_now):
        _seed_history(workspace["history"], make_assessment, fixed_now, [0.6, 0.45, 0.3])
        out = workspace["root"] / "tl.json"
        result = runner.invoke(
            app,
            ["timeline", "--range", "all", "--output", str(out), "--config", str(workspace["config"])],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["status"] == "ok"
        assert data["overall_trend"] == "improving"

    def test_timeline_insufficient(self, workspace, make_assessment, fixed_now):
        _seed_history(workspace["history"], make_assessment, fixed_now, [0.6, 0.3])
        result = runner.invoke(
            app, ["timeline", "--range", "all", "--config", str(workspace["config"])]
        )
        assert result.exit_code == 0, result.output
        assert "not enough scans" in result.output

    def test_timeline_bad_range(self, workspace, make_assessment, fixed_now):
        _seed_history(workspace["history"], make_assessment, fixed_now, [0.6])
        result = runner.invoke(
            app, ["timeline", "--range", "2w", "--config", str(workspace["config"])]
        )
        assert result.exit_code == 1
