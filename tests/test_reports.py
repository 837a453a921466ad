"""
Unit tests for the CSV export and the Markdown comparison summary.
"""
import csv
import io
from datetime import date, datetime

from app.services.reports import (
    BAR_CHAR,
    BAR_WIDTH,
    CSV_BOM,
    NAME_WIDTH,
    comparison_csv_filename,
    csv_headers,
    encode_csv,
    format_date,
    generate_comparison_csv,
    generate_legal_summary,
    generate_milestone_table,
    render_bar_chart,
)
from app.services.timeline import ComparisonPair
from tests.factories import make_result


def parse_csv(text):
    return list(csv.reader(io.StringIO(text)))


class TestFormatDate:
    def test_date(self):
        assert format_date(date(2023, 4, 5)) == "2023-04-05"

    def test_datetime_drops_time(self):
        assert format_date(datetime(2023, 4, 5, 13, 45)) == "2023-04-05"

    def test_none_is_empty(self):
        assert format_date(None) == ""


class TestCsv:
    def test_headers(self):
        headers = csv_headers()
        assert headers[:2] == ["Project name", "Project code"]
        assert headers[2] == "0.Survey"
        assert headers[13] == "11.Registration"
        assert headers[14] == "Full process (days)"
        assert headers[17] == "Construction to meter (days)"
        assert len(headers) == 18

    def test_all_null_project_gives_empty_cells(self):
        text = generate_comparison_csv([make_result("base", is_baseline=True, name="Site A")])
        rows = parse_csv(text)
        assert rows[1][:2] == ["Site A", "BASE-2023"]
        assert rows[1][2:] == [""] * 16
        assert "None" not in text
        assert "null" not in text

    def test_dates_and_days(self):
        result = make_result(
            "a",
            {"interval_total": 300, "interval_08_10": 14, "interval_10_11": 99},
            dates={1: date(2023, 1, 1), 11: datetime(2023, 10, 28, 8)},
        )
        row = parse_csv(generate_comparison_csv([result]))[1]
        assert row[3] == "2023-01-01"
        assert row[13] == "2023-10-28"
        assert row[14] == "300"
        assert row[17] == "14"
        assert "99" not in row

    def test_row_per_result_in_order(self):
        results = [make_result("base", is_baseline=True), make_result("a"), make_result("b")]
        rows = parse_csv(generate_comparison_csv(results))
        assert [r[0] for r in rows[1:]] == ["base", "a", "b"]

    def test_names_with_commas_are_quoted(self):
        rows = parse_csv(generate_comparison_csv([make_result("a", name="Roof, east wing")]))
        assert rows[1][0] == "Roof, east wing"

    def test_encode_adds_bom(self):
        body = encode_csv("a,b\n")
        assert body.startswith(CSV_BOM.encode("utf-8"))
        assert body.decode("utf-8-sig") == "a,b\n"

    def test_filename(self):
        assert (
            comparison_csv_filename("PV-2023", date(2024, 3, 9))
            == "project-comparison_PV-2023_20240309.csv"
        )


class TestBarChart:
    def test_bars_scale_to_longest(self):
        results = [
            make_result("base", {"interval_total": 200}, is_baseline=True),
            make_result("a", {"interval_total": 100}),
        ]
        lines = render_bar_chart(results)
        assert lines[0].count(BAR_CHAR) == BAR_WIDTH
        assert lines[0].endswith("200d [baseline]")
        assert lines[1].count(BAR_CHAR) == BAR_WIDTH // 2
        assert lines[1].endswith("100d")

    def test_incomplete_project(self):
        lines = render_bar_chart([make_result("a")])
        assert lines == ["a".ljust(NAME_WIDTH) + " │ (incomplete)"]

    def test_long_names_truncated(self):
        lines = render_bar_chart([make_result("a", {"interval_total": 10}, name="X" * 30)])
        assert lines[0].startswith("X" * (NAME_WIDTH - 2) + ".. │")


class TestLegalSummary:
    def _results(self):
        return [
            make_result(
                "base",
                {"interval_total": 300, "interval_00_01": 10, "interval_10_11": 20},
                is_baseline=True,
                name="Baseline Farm",
            ),
            make_result("a", {"interval_total": 250, "interval_00_01": 15}, name="Alpha"),
            make_result("b", {"interval_total": 350, "interval_00_01": 10}, name="Beta"),
        ]

    def test_empty_without_baseline(self):
        assert generate_legal_summary([make_result("a")]) == ""
        assert generate_legal_summary([]) == ""

    def test_sections_present(self):
        text = generate_legal_summary(self._results())
        for heading in (
            "## Project Progress Comparison Report",
            "### 1. Baseline project",
            "### 2. Compared projects",
            "### 3. Full process duration (bar chart)",
            "### 4. Stage duration table",
            "### 5. Summary intervals",
        ):
            assert heading in text

    def test_baseline_versus_peer_average(self):
        text = generate_legal_summary(self._results())
        assert "- **Project name:** Baseline Farm" in text
        assert "- **Full process duration:** 300 days" in text
        assert "- **Peer average:** 300 days" in text
        assert "in line with the peer average" in text

    def test_stage_table_cells(self):
        text = generate_legal_summary(self._results())
        row = next(line for line in text.splitlines() if line.startswith("| 1 |"))
        assert "10d (baseline)" in row
        assert "15d (+5)" in row
        assert "| 10d |" in row
        assert row.endswith("| 13d |")

    def test_stage_table_marks_missing(self):
        text = generate_legal_summary(self._results())
        row = next(line for line in text.splitlines() if line.startswith("| 2 |"))
        assert "| - | - | - | - |" in row

    def test_summary_intervals_list_every_project(self):
        text = generate_legal_summary(self._results())
        assert "  - [baseline] Baseline Farm: 20 days" in text
        assert "  - Alpha: incomplete" in text

    def test_selected_intervals_filter(self):
        text = generate_legal_summary(self._results(), ["interval_total"])
        assert "### 4. Stage duration table" not in text
        assert "**Full process**" in text
        assert "Signing to consent" not in text

    def test_empty_selection_means_all(self):
        assert generate_legal_summary(self._results(), []) == generate_legal_summary(self._results())

    def test_extra_pairs_listed_after_builtin_summaries(self):
        extra = ComparisonPair(
            id="survey_to_meter", label="Survey to meter", description="Survey to meter",
            from_step=0, to_step=10,
        )
        results = self._results()
        results[0] = make_result(
            "base", {"interval_total": 300, "survey_to_meter": 250}, is_baseline=True, name="Baseline Farm",
        )
        text = generate_legal_summary(results, extra_pairs=[extra])
        assert text.index("**Full process**") < text.index("**Survey to meter**")
        assert "  - [baseline] Baseline Farm: 250 days" in text

    def test_extra_pairs_honor_selection(self):
        extra = ComparisonPair(id="custom", label="Custom span", description="", from_step=0, to_step=10)
        text = generate_legal_summary(self._results(), ["interval_total"], extra_pairs=[extra])
        assert "Custom span" not in text

    def test_behind_average(self):
        results = self._results()
        results[2] = make_result("b", {"interval_total": 150}, name="Beta")
        text = generate_legal_summary(results)
        assert "behind the peer average by 100 days" in text


def test_milestone_table():
    results = [
        make_result("base", is_baseline=True, name="Base", dates={0: date(2022, 12, 1)}),
        make_result("a", name="Alpha"),
    ]
    text = generate_milestone_table(results)
    lines = text.splitlines()
    assert lines[0] == "### 6. Milestone dates"
    assert "| # | Milestone | Base (baseline) | Alpha |" in lines
    assert "| 0 | Initial site survey | 2022-12-01 | - |" in lines
    assert len([l for l in lines if l.startswith("| ") and l[2].isdigit()]) == 12
