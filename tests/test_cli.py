"""Tests for the click command line."""

from click.testing import CliRunner

from tui_timeline.cli import main
from tui_timeline.config import load_config
from tui_timeline.store import DATA_FILE, TimelineStore, data_path, load_store


def _write_store(project_dir):
    store = TimelineStore(path=data_path(project_dir))
    store.create_project("Website Redesign", "2025-01-15", "2025-03-30", project_id="web")
    store.create_task("web", "Design", "2025-02-05", "2025-02-20", gap_days=5, task_id="t1")
    store.create_project("Mobile App", "2025-02-01", "2025-05-15", project_id="app")
    store.save()


class TestInit:
    def test_creates_config_and_sample(self, tmp_path):
        target = tmp_path / "roadmap"
        result = CliRunner().invoke(main, ["init", str(target), "--name", "Launch"])
        assert result.exit_code == 0, result.output
        assert (target / DATA_FILE).exists()
        assert (target / ".tui-timeline" / "config.toml").exists()
        assert load_config(target).name == "Launch"
        assert load_store(target).list_projects()[0].label == "Launch"

    def test_existing_timeline_is_kept(self, tmp_path):
        _write_store(tmp_path)
        before = (tmp_path / DATA_FILE).read_text(encoding="utf-8")
        result = CliRunner().invoke(main, ["init", str(tmp_path), "--name", "Other"])
        assert result.exit_code == 1
        assert (tmp_path / DATA_FILE).read_text(encoding="utf-8") == before

    def test_path_is_a_file(self, tmp_path):
        stray = tmp_path / "notes.txt"
        stray.write_text("x", encoding="utf-8")
        result = CliRunner().invoke(main, ["init", str(stray), "--name", "X"])
        assert result.exit_code == 1


class TestExport:
    def test_by_name(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["export", str(tmp_path), "--project", "Website Redesign"])
        assert result.exit_code == 0, result.output
        text = (tmp_path / "Website_Redesign_export.txt").read_text(encoding="utf-8")
        assert "Project Title: Website Redesign" in text
        assert "Tasks (1):" in text

    def test_by_id_to_output(self, tmp_path):
        _write_store(tmp_path)
        out = tmp_path / "report.txt"
        result = CliRunner().invoke(main, ["export", str(tmp_path), "--project", "app", "--output", str(out)])
        assert result.exit_code == 0, result.output
        assert "Project Title: Mobile App" in out.read_text(encoding="utf-8")

    def test_unknown_project(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["export", str(tmp_path), "--project", "nope"])
        assert result.exit_code == 1

    def test_broken_store(self, tmp_path):
        (tmp_path / DATA_FILE).write_text("projects: [oops\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["export", str(tmp_path), "--project", "web"])
        assert result.exit_code == 1


class TestShow:
    def test_prints_rows(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["--no-color", "show", str(tmp_path), "--width", "100"])
        assert result.exit_code == 0, result.output
        assert "Project / Task" in result.output
        assert "Website Redesign" in result.output
        assert "Design" in result.output
        assert "Mobile App" in result.output

    def test_zoom_option(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["show", str(tmp_path), "--zoom", "week", "--width", "120"])
        assert result.exit_code == 0, result.output
        assert "2025-01-13 →" in result.output

    def test_archived_hidden(self, tmp_path):
        _write_store(tmp_path)
        store = load_store(tmp_path)
        store.toggle_project_archived("app")
        store.save()
        runner = CliRunner()
        hidden = runner.invoke(main, ["show", str(tmp_path), "--width", "100"])
        shown = runner.invoke(main, ["show", str(tmp_path), "--width", "100", "--archived"])
        assert "Mobile App" not in hidden.output
        assert "Mobile App" in shown.output


class TestInitTheme:
    def test_twice(self, tmp_path):
        runner = CliRunner()
        first = runner.invoke(main, ["init-theme", str(tmp_path)])
        assert first.exit_code == 0, first.output
        assert (tmp_path / ".tui-timeline" / "theme.yaml").exists()
        second = runner.invoke(main, ["init-theme", str(tmp_path)])
        assert second.exit_code == 1


class TestOptions:
    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_log_file(self, tmp_path):
        _write_store(tmp_path)
        log_file = tmp_path / "run.log"
        result = CliRunner().invoke(
            main,
            ["--log-level", "DEBUG", "--log-file", str(log_file), "show", str(tmp_path), "--width", "80"],
        )
        assert result.exit_code == 0, result.output
        assert log_file.exists()


class TestExportJson:
    def test_dumps_everything(self, tmp_path):
        import json

        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["export", str(tmp_path), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads((tmp_path / "timeline_export.json").read_text(encoding="utf-8"))
        assert [p["id"] for p in data["projects"]] == ["web", "app"]
        assert data["tasks"][0]["id"] == "t1"

    def test_needs_project_or_json(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["export", str(tmp_path)])
        assert result.exit_code == 1


class TestEditing:
    def test_add_project(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(
            main,
            ["add-project", str(tmp_path), "--name", "Docs", "--start", "2025-04-01", "--end", "2025-04-30"],
        )
        assert result.exit_code == 0, result.output
        project = load_store(tmp_path).find_project("Docs")
        assert project is not None
        assert project.end_date.isoformat() == "2025-04-30"

    def test_add_project_bad_range(self, tmp_path):
        _write_store(tmp_path)
        before = (tmp_path / DATA_FILE).read_text(encoding="utf-8")
        result = CliRunner().invoke(
            main,
            ["add-project", str(tmp_path), "--name", "Docs", "--start", "2025-05-01", "--end", "2025-04-01"],
        )
        assert result.exit_code == 1
        assert (tmp_path / DATA_FILE).read_text(encoding="utf-8") == before

    def test_add_task(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(
            main,
            [
                "add-task", str(tmp_path), "--project", "Mobile App", "--name", "Build",
                "--start", "2025-03-01", "--end", "2025-03-20", "--gap", "2",
            ],
        )
        assert result.exit_code == 0, result.output
        tasks = load_store(tmp_path).list_tasks("app")
        assert [t.label for t in tasks] == ["Build"]
        assert tasks[0].gap_days_before == 2

    def test_add_task_unknown_project(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(
            main,
            ["add-task", str(tmp_path), "--project", "nope", "--name", "X", "--start", "2025-03-01", "--end", "2025-03-02"],
        )
        assert result.exit_code == 1

    def test_delete_project_with_yes(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["delete-project", str(tmp_path), "web", "--yes"])
        assert result.exit_code == 0, result.output
        store = load_store(tmp_path)
        assert [p.id for p in store.list_projects()] == ["app"]
        assert store.list_tasks("app") == []

    def test_delete_project_declined(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["delete-project", str(tmp_path), "web"], input="n\n")
        assert result.exit_code == 0
        assert load_store(tmp_path).find_project("web") is not None

    def test_delete_task(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["delete-task", str(tmp_path), "t1"], input="y\n")
        assert result.exit_code == 0, result.output
        assert load_store(tmp_path).list_tasks("web") == []

    def test_delete_unknown_task(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["delete-task", str(tmp_path), "t9", "--yes"])
        assert result.exit_code == 1
        assert "task not found: t9" in result.output

    def test_save_failure_exits(self, tmp_path, monkeypatch):
        _write_store(tmp_path)
        before = (tmp_path / DATA_FILE).read_text(encoding="utf-8")

        def refuse(src, dst):
            raise PermissionError("read-only folder")

        monkeypatch.setattr("tui_timeline.store.os.replace", refuse)
        result = CliRunner().invoke(
            main,
            ["add-project", str(tmp_path), "--name", "Docs", "--start", "2025-04-01", "--end", "2025-04-30"],
        )
        assert result.exit_code == 1
        assert "read-only folder" in result.output
        assert (tmp_path / DATA_FILE).read_text(encoding="utf-8") == before


class TestHolidays:
    def test_add_list_remove(self, tmp_path):
        _write_store(tmp_path)
        runner = CliRunner()
        added = runner.invoke(main, ["holiday", "add", str(tmp_path), "2025-12-24", "2025-12-26"])
        assert added.exit_code == 0, added.output
        holiday = load_store(tmp_path).get_holiday_settings()[0]

        listed = runner.invoke(main, ["holiday", "list", str(tmp_path)])
        assert f"{holiday.id}  2025-12-24 → 2025-12-26" in listed.output

        removed = runner.invoke(main, ["holiday", "remove", str(tmp_path), holiday.id])
        assert removed.exit_code == 0, removed.output
        assert load_store(tmp_path).get_holiday_settings() == []

    def test_single_day(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["holiday", "add", str(tmp_path), "2025-07-04"])
        assert result.exit_code == 0, result.output
        holiday = load_store(tmp_path).get_holiday_settings()[0]
        assert holiday.start_date == holiday.end_date

    def test_remove_unknown(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["holiday", "remove", str(tmp_path), "h9"])
        assert result.exit_code == 1


class TestSettings:
    def test_show(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["settings", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "Capacity: 8 hrs/day • 5 days/week" in result.output

    def test_update(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["settings", str(tmp_path), "--hours-per-day", "6", "--days-per-week", "4"])
        assert result.exit_code == 0, result.output
        settings = load_store(tmp_path).get_settings()
        assert (settings.hours_per_day, settings.days_per_week) == (6, 4)

    def test_out_of_range(self, tmp_path):
        _write_store(tmp_path)
        result = CliRunner().invoke(main, ["settings", str(tmp_path), "--days-per-week", "8"])
        assert result.exit_code == 2
