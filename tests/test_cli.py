"""Tests for CLI commands."""

from __future__ import annotations

import json
from datetime import date, timedelta

from typer.testing import CliRunner

from biotrend.cli import app

runner = CliRunner()


def invoke_json(args: list[str]) -> dict:
    result = runner.invoke(app, args + ["--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def create_user(*extra: str) -> None:
    result = runner.invoke(
        app,
        ["user", "create", "--sex", "female", "--age", "30", "--height", "170",
         "--weight", "70", *extra],
    )
    assert result.exit_code == 0, result.output


class TestMainCommands:
    """Tests for main CLI commands."""

    def test_help(self):
        """Test that --help works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "weekly insight" in result.output.lower()

    def test_weight_add_requires_weight(self):
        """Test that weight add requires a weight argument."""
        result = runner.invoke(app, ["weight", "add"])
        assert result.exit_code != 0

    def test_arrival_requires_options(self):
        """Test that arrival requires --current and --target."""
        result = runner.invoke(app, ["arrival"])
        assert result.exit_code != 0


class TestUserCommands:
    """Tests for user subcommands."""

    def test_create_and_show(self, cli_db):
        """Created profile is returned by show."""
        create_user("--goal", "weight_loss", "--target", "65")
        data = invoke_json(["user", "show"])["data"]
        assert data["sex"] == "female"
        assert data["goal"] == "weight_loss"
        assert data["target_weight_kg"] == 65

    def test_create_rejects_bad_sex(self, cli_db):
        """Invalid sex exits with an error."""
        result = runner.invoke(
            app,
            ["user", "create", "--sex", "x", "--age", "30", "--height", "170",
             "--weight", "70", "--json"],
        )
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_update(self, cli_db):
        """Update changes the stored goal."""
        create_user()
        invoke_json(["user", "update", "--goal", "muscle_gain"])
        assert invoke_json(["user", "show"])["data"]["goal"] == "muscle_gain"

    def test_show_without_profile(self, cli_db):
        """Show fails when no profile exists."""
        result = runner.invoke(app, ["user", "show"])
        assert result.exit_code == 1
        assert "No user profile found" in result.output


class TestWeightCommands:
    """Tests for weight subcommands."""

    def test_add_replays_trend(self, cli_db):
        """Trend after 70.0, 70.5, 69.8 is 70.0."""
        create_user()
        today = date.today()
        for offset, kg in [(2, "70.0"), (1, "70.5"), (0, "69.8")]:
            day = (today - timedelta(days=offset)).isoformat()
            response = invoke_json(["weight", "add", kg, "--date", day])
        assert response["data"]["trend_kg"] == 70.0

    def test_add_same_day_replaces(self, cli_db):
        """A second reading for a date replaces the first."""
        create_user()
        invoke_json(["weight", "add", "71.0"])
        invoke_json(["weight", "add", "70.2"])
        entries = invoke_json(["weight", "list"])["data"]["entries"]
        assert len(entries) == 1
        assert entries[0]["weight_kg"] == 70.2

    def test_add_rejects_non_positive(self, cli_db):
        """Zero weight is rejected."""
        create_user()
        result = runner.invoke(app, ["weight", "add", "0"])
        assert result.exit_code == 1

    def test_add_rejects_bad_date(self, cli_db):
        """Malformed date is rejected."""
        create_user()
        result = runner.invoke(app, ["weight", "add", "70", "--date", "14/03/2025"])
        assert result.exit_code == 1
        assert "Invalid date" in result.output

    def test_trend_needs_two_readings(self, cli_db):
        """Trend report needs at least two readings."""
        create_user()
        invoke_json(["weight", "add", "70.0"])
        result = runner.invoke(app, ["weight", "trend"])
        assert result.exit_code == 1


class TestMealsCommands:
    """Tests for meals subcommands."""

    def test_log_and_today(self, cli_db):
        """Logged checks show up in today's tally."""
        create_user()
        invoke_json(["meals", "log", "lunch", "--protein", "--satiety", "4"])
        invoke_json(["meals", "log", "dinner", "--plants"])
        data = invoke_json(["meals", "today"])["data"]
        assert data["protein_hits"] == 1
        assert data["plants_hits"] == 1
        assert data["meals_logged"] == ["lunch", "dinner"]
        assert data["has_protein_today"] is True

    def test_unknown_slot(self, cli_db):
        """Unknown meal slot is rejected."""
        create_user()
        result = runner.invoke(app, ["meals", "log", "brunch"])
        assert result.exit_code == 1

    def test_satiety_out_of_range(self, cli_db):
        """Satiety outside 1-5 is rejected."""
        create_user()
        result = runner.invoke(app, ["meals", "log", "lunch", "--satiety", "9"])
        assert result.exit_code == 1


class TestReviewCommands:
    """Tests for review, plan and arrival commands."""

    def test_review_insufficient_data(self, cli_db):
        """New user sees the keep-logging message."""
        create_user()
        response = invoke_json(["review"])
        assert response["data"]["has_enough_data"] is False
        assert response["human_summary"].startswith("Keep logging")

    def test_review_with_data(self, cli_db):
        """Three protein days give 43% adherence."""
        create_user()
        today = date.today()
        for offset in range(3):
            day = (today - timedelta(days=offset)).isoformat()
            invoke_json(["meals", "log", "lunch", "--protein", "--date", day])
        data = invoke_json(["review"])["data"]
        assert data["stats"]["adherence_pct"] == 43
        assert data["has_enough_data"] is True

    def test_review_table_output(self, cli_db):
        """Plain output renders the review card."""
        create_user()
        result = runner.invoke(app, ["review"])
        assert result.exit_code == 0
        assert "Weekly Review" in result.output

    def test_plan(self, cli_db):
        """Plan uses the stored profile."""
        create_user("--goal", "weight_loss", "--target", "70")
        data = invoke_json(["plan"])["data"]
        assert data["calories"] == 1242
        assert data["protein_grams"] == 140
        assert data["arrival"]["at_goal"] is True

    def test_arrival(self, cli_db):
        """80 -> 75 kg takes 9 weeks."""
        data = invoke_json(["arrival", "--current", "80", "--target", "75"])["data"]
        assert data["weeks"] == 9
        assert data["at_goal"] is False

    def test_arrival_invalid(self, cli_db):
        """Non-positive current weight is an error."""
        result = runner.invoke(app, ["arrival", "--current", "0", "--target", "75", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_configured_json_default(self, cli_db, tmp_path):
        """defaults.output_format: json makes --json the default."""
        config_dir = tmp_path / ".biotrend"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("defaults:\n  output_format: json\n")
        result = runner.invoke(app, ["arrival", "--current", "80", "--target", "75"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["weeks"] == 9

    def test_review_reports_weigh_in_today(self, cli_db):
        """weighed_today follows whether a reading exists for today."""
        create_user()
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        invoke_json(["weight", "add", "70.0", "--date", yesterday])
        assert invoke_json(["review"])["data"]["weighed_today"] is False
        invoke_json(["weight", "add", "69.8"])
        assert invoke_json(["review"])["data"]["weighed_today"] is True

    def test_review_table_prompts_weigh_in(self, cli_db):
        """Plain review output nudges when today has no reading."""
        create_user()
        result = runner.invoke(app, ["review"])
        assert "No weigh-in logged today" in result.output


class TestActivityLevels:
    """Tests for activity level listing."""

    def test_activities_json(self, cli_db):
        """Every level is listed with its multiplier and onboarding copy."""
        levels = invoke_json(["user", "activities"])["data"]["levels"]
        assert [entry["multiplier"] for entry in levels] == [1.2, 1.375, 1.55, 1.725, 1.9]
        assert levels[0]["label"] == "Sedentary"
        assert levels[0]["description"] == "Office job, minimal exercise"

    def test_activities_table(self, cli_db):
        """Plain output shows the level table."""
        result = runner.invoke(app, ["user", "activities"])
        assert result.exit_code == 0
        assert "Sedentary" in result.output
        assert "1.375" in result.output

    def test_create_help_lists_levels(self):
        """--activity help is built from the level descriptions."""
        from biotrend.cli import ACTIVITY_HELP

        assert "1.55 Moderately Active" in ACTIVITY_HELP
        assert "1.9 Extremely Active" in ACTIVITY_HELP
