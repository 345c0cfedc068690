"""
Tests for the command-line entry point.
"""

import json
import pytest
from unittest.mock import MagicMock


@pytest.fixture
def records_file(tmp_path, raw_record_factory):
    """Input file with two valid records."""
    path = tmp_path / "records.json"
    path.write_text(json.dumps([raw_record_factory(), raw_record_factory(id="pol-102")]))
    return path


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def logging_setup(clean_env):
    """Replace logging setup so tests keep pytest's handlers."""
    setup = MagicMock()
    clean_env.setattr("analysis_export.cli.setup_logging", setup)
    return setup


def _run(*args):
    from analysis_export.cli import main

    return main([str(a) for a in args])


class TestCliExports:
    """Tests for successful CLI runs."""

    def test_csv_export(self, records_file, output_dir, logging_setup, capsys):
        """Test a CSV export writes the file and reports it."""
        code = _run("--input", records_file, "--format", "csv", "--output-dir", output_dir)

        target = output_dir / "multi-dimensional-analysis.csv"
        assert code == 0
        assert target.exists()
        assert "# Total Records: 2" in target.read_text()
        assert f"Exported 2 records to {target}" in capsys.readouterr().out
        logging_setup.assert_called_once_with("INFO", "text")

    def test_json_with_filters(self, records_file, output_dir, logging_setup):
        """Test filters are recorded in the JSON metadata."""
        code = _run(
            "--input", records_file,
            "--format", "json",
            "--output-dir", output_dir,
            "--filters", '{"party": "PDP"}',
        )

        document = json.loads((output_dir / "multi-dimensional-analysis.json").read_text())
        assert code == 0
        assert document["metadata"]["filtersApplied"] == {"party": "PDP"}
        assert document["summary"]["totalRecords"] == 2

    def test_svg_with_chart(self, records_file, output_dir, tmp_path, logging_setup, svg_markup):
        """Test an SVG export from a chart file with a custom chart type."""
        chart = tmp_path / "chart.html"
        chart.write_text(svg_markup)

        code = _run(
            "--input", records_file,
            "--format", "svg",
            "--output-dir", output_dir,
            "--chart", chart,
            "--chart-type", "sentiment-trend",
        )

        text = (output_dir / "sentiment-trend-chart.svg").read_text()
        assert code == 0
        assert text.startswith("<svg")
        assert "<!-- Multi-Dimensional Analysis Chart" in text

    def test_png_options(self, records_file, output_dir, tmp_path, logging_setup, svg_markup):
        """Test snapshot flags reach the PNG stub."""
        chart = tmp_path / "chart.svg"
        chart.write_text(svg_markup)

        code = _run(
            "--input", records_file,
            "--format", "png",
            "--output-dir", output_dir,
            "--chart", chart,
            "--width", 640,
            "--height", 480,
            "--quality", 0.9,
            "--no-chart-metadata",
        )

        text = (output_dir / "multi-dimensional-chart.png.txt").read_text()
        assert code == 0
        assert text == (
            "High-resolution PNG export (640x480) with quality 0.9 without metadata "
            "would be generated here."
        )

    def test_env_output_dir(self, records_file, tmp_path, clean_env, logging_setup):
        """Test the output directory falls back to the environment."""
        env_dir = tmp_path / "from-env"
        clean_env.setenv("EXPORT_OUTPUT_DIR", str(env_dir))

        assert _run("--input", records_file, "--format", "pdf") == 0
        assert (env_dir / "multi-dimensional-analysis-report.txt").exists()


class TestCliErrors:
    """Tests for CLI failure exit codes."""

    def test_invalid_filters(self, records_file, output_dir, logging_setup, capsys):
        """Test malformed filters are a configuration error."""
        code = _run("--input", records_file, "--output-dir", output_dir, "--filters", "[1, 2]")

        assert code == 2
        assert "--filters must be a JSON object" in capsys.readouterr().err

    def test_invalid_quality(self, records_file, output_dir, logging_setup):
        """Test out-of-range options fail validation."""
        code = _run("--input", records_file, "--output-dir", output_dir, "--quality", 2)

        assert code == 2
        logging_setup.assert_not_called()

    def test_invalid_record(self, tmp_path, output_dir, logging_setup):
        """Test invalid input records fail the export."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"name": "No id"}]))

        assert _run("--input", path, "--output-dir", output_dir) == 1
        assert not output_dir.exists()

    def test_missing_input(self, tmp_path, output_dir, logging_setup):
        """Test a missing input file fails the export."""
        assert _run("--input", tmp_path / "missing.json", "--output-dir", output_dir) == 1

    def test_svg_without_chart(self, records_file, output_dir, logging_setup):
        """Test an image format without --chart fails before writing."""
        code = _run("--input", records_file, "--format", "svg", "--output-dir", output_dir)

        assert code == 1
        assert not output_dir.exists()


class TestBuildConfig:
    """Tests for flag overlay on the environment configuration."""

    def test_flags_override(self):
        """Test only supplied flags override the base configuration."""
        from analysis_export.cli import build_config, create_parser
        from analysis_export.config import ExportConfig

        args = create_parser().parse_args([
            "--input", "records.json",
            "--chart-type", "bar",
            "--log-level", "DEBUG",
            "--no-chart-metadata",
        ])
        base = ExportConfig(output_dir="base-dir", chart_width=1000)

        config = build_config(args, base)

        assert config.output_dir == "base-dir"
        assert config.chart_width == 1000
        assert config.chart_type == "bar"
        assert config.log_level == "DEBUG"
        assert config.chart_include_metadata is False
