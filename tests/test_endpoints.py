"""
Integration tests for API endpoints using the SQLite test database.
"""
from datetime import date

from app.models.comparison_stage import ComparisonStage


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestCatalog:
    def test_milestones(self, client):
        r = client.get("/comparison/milestones")
        assert r.status_code == 200
        body = r.json()
        assert [m["step"] for m in body] == list(range(12))
        assert body[10]["short_label"] == "Meter"

    def test_projects(self, client, make_project):
        make_project("B-2023", name="Bravo", intake_year=2023)
        make_project("A-2022", name="Alpha", intake_year=2022)
        r = client.get("/comparison/projects")
        assert r.status_code == 200
        body = r.json()
        assert [p["project_name"] for p in body] == ["Alpha", "Bravo"]
        assert body[0]["intake_year"] == 2022
        assert body[0]["created_at"] is not None

    def test_years(self, client, make_project):
        make_project("A", intake_year=2022)
        make_project("B", intake_year=2024)
        r = client.get("/comparison/years")
        assert r.status_code == 200
        assert r.json() == [2024, 2022]


def _seed(make_project, make_document):
    base = make_project(
        "PV-2023", name="Baseline Farm",
        initial_survey_date=date(2023, 1, 1), contract_signed_at=date(2023, 1, 11),
    )
    make_document(base, code="MOEA_REGISTER", issued_at=date(2023, 12, 1))
    fast = make_project(
        "PV-2022", name="Fast Roof",
        initial_survey_date=date(2023, 1, 1), contract_signed_at=date(2023, 1, 6),
    )
    make_document(fast, code="MOEA_REGISTER", issued_at=date(2023, 7, 1))
    slow = make_project(
        "PV-2021", name="Slow Field",
        initial_survey_date=date(2023, 1, 1), contract_signed_at=date(2023, 2, 10),
    )
    make_document(slow, label="能源署設備登記函", issued_at=date(2024, 6, 1))
    empty = make_project("PV-2020", name="Empty Lot")
    return base, fast, slow, empty


class TestCompare:
    def test_compare(self, client, make_project, make_document):
        base, fast, slow, empty = _seed(make_project, make_document)
        r = client.post("/comparison", json={
            "baseline_id": base.id,
            "comparison_ids": [empty.id, fast.id, slow.id, "ghost"],
        })
        assert r.status_code == 200
        body = r.json()
        assert body["baseline"]["project_code"] == "PV-2023"
        assert body["baseline_year"] == 2023
        assert body["total_compared"] == 3

        # baseline first, then longest full process, incomplete last
        names = [res["project"]["project_name"] for res in body["results"]]
        assert names == ["Baseline Farm", "Slow Field", "Fast Roof", "Empty Lot"]

        baseline = body["results"][0]
        assert baseline["is_baseline"] is True
        assert len(baseline["dates"]) == 12
        assert baseline["dates"][1] == {
            "step": 1, "date": "2023-01-11", "doc_type": None, "source": "project_field",
        }
        assert baseline["intervals"]["interval_00_01"]["days"] == 10
        assert baseline["intervals"]["interval_00_01"]["delta"] is None

        slow_res = body["results"][1]
        assert slow_res["intervals"]["interval_00_01"] == {
            "from_date": "2023-01-01",
            "to_date": "2023-02-10",
            "days": 40,
            "delta": 30,
            "status": "complete",
        }
        assert slow_res["dates"][11]["doc_type"] == "能源署設備登記函"

        empty_res = body["results"][3]
        assert empty_res["intervals"]["interval_total"]["status"] == "incomplete"
        assert empty_res["intervals"]["interval_total"]["days"] is None

        stats = {s["pair_id"]: s for s in body["stats"]}
        assert len(stats) == 10
        assert stats["interval_00_01"]["count"] == 2
        assert stats["interval_00_01"]["average"] == 23   # (5 + 40) / 2 rounded up
        assert stats["interval_02_03"]["count"] == 0
        assert stats["interval_02_03"]["average"] is None

    def test_baseline_only(self, client, make_project):
        base = make_project("PV-2023")
        r = client.post("/comparison", json={"baseline_id": base.id})
        assert r.status_code == 200
        body = r.json()
        assert len(body["results"]) == 1
        assert body["total_compared"] == 0

    def test_user_stage_computed_in_run(self, client, make_project):
        base = make_project("PV-2023", initial_survey_date=date(2023, 1, 1), actual_meter_date=date(2023, 1, 31))
        r = client.post("/comparison/stages", json={
            "code": "survey_to_meter", "label": "Survey to meter", "from_step": 0, "to_step": 10,
        })
        assert r.status_code == 201
        r = client.post("/comparison", json={"baseline_id": base.id})
        assert r.json()["results"][0]["intervals"]["survey_to_meter"]["days"] == 30


class TestExports:
    def test_csv(self, client, make_project, make_document):
        base, fast, slow, empty = _seed(make_project, make_document)
        r = client.post("/comparison/csv", json={
            "baseline_id": base.id, "comparison_ids": [fast.id, empty.id],
        })
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        disposition = r.headers["content-disposition"]
        assert disposition.startswith("attachment; filename*=UTF-8''project-comparison_PV-2023_")
        assert disposition.endswith(".csv")
        assert r.content.startswith(b"\xef\xbb\xbf")

        lines = r.content.decode("utf-8-sig").splitlines()
        assert lines[0].startswith("Project name,Project code,0.Survey")
        assert lines[1].startswith("Baseline Farm,PV-2023,2023-01-01,2023-01-11")
        assert len(lines) == 4
        assert lines[3].startswith("Empty Lot,PV-2020,,,")
        assert "None" not in r.text

    def test_legal_summary(self, client, make_project, make_document):
        base, fast, slow, empty = _seed(make_project, make_document)
        r = client.post("/comparison/legal-summary", json={
            "baseline_id": base.id, "comparison_ids": [fast.id, slow.id],
        })
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/markdown")
        text = r.text
        assert text.startswith("## Project Progress Comparison Report")
        assert "### 4. Stage duration table" in text
        assert "### 6. Milestone dates" in text
        assert "[baseline]" in text

    def test_legal_summary_selected_intervals(self, client, make_project, make_document):
        base, fast, slow, empty = _seed(make_project, make_document)
        r = client.post("/comparison/legal-summary", json={
            "baseline_id": base.id,
            "comparison_ids": [fast.id],
            "selected_intervals": ["interval_total"],
        })
        assert r.status_code == 200
        assert "### 4. Stage duration table" not in r.text
        assert "### 5. Summary intervals" in r.text

    def test_bottlenecks(self, client, make_project, make_document):
        base, fast, slow, empty = _seed(make_project, make_document)
        r = client.post("/comparison/bottlenecks", json={
            "baseline_id": base.id, "comparison_ids": [fast.id, slow.id],
        })
        assert r.status_code == 200
        body = r.json()
        assert len(body["projects"]) == 3
        worst = body["overall_worst"]
        assert worst["project_name"] == "Slow Field"
        assert worst["worst_stage"]["pair_id"] == "interval_00_01"
        assert worst["worst_stage"]["delta"] == 17
        assert worst["worst_stage"]["severity"] == "warning"


class TestStages:
    def test_list_builtin(self, client):
        r = client.get("/comparison/stages")
        assert r.status_code == 200
        body = r.json()
        assert len(body) == 17
        assert body[0]["id"] == "interval_00_01"
        assert body[0]["is_system"] is True

    def test_create_list_delete(self, client):
        r = client.post("/comparison/stages", json={
            "code": "survey_to_registration",
            "label": "  Survey to registration  ",
            "from_step": 0,
            "to_step": 11,
        })
        assert r.status_code == 201
        assert r.json()["label"] == "Survey to registration"
        assert r.json()["is_system"] is False

        body = client.get("/comparison/stages").json()
        assert len(body) == 18
        assert body[-1]["id"] == "survey_to_registration"
        assert body[-1]["from_step"] == 0

        r = client.delete("/comparison/stages/survey_to_registration")
        assert r.status_code == 204
        body = client.get("/comparison/stages").json()
        assert all(s["is_system"] for s in body)

    def test_duplicate(self, client):
        payload = {"code": "x", "label": "X", "from_step": 1, "to_step": 2}
        assert client.post("/comparison/stages", json=payload).status_code == 201
        r = client.post("/comparison/stages", json=payload)
        assert r.status_code == 409
        assert r.json()["code"] == "DUPLICATE_STAGE"

    def test_builtin_id_is_reserved(self, client):
        r = client.post("/comparison/stages", json={
            "code": "interval_00_01", "label": "Survey to meter", "from_step": 0, "to_step": 10,
        })
        assert r.status_code == 409
        body = r.json()
        assert body["code"] == "RESERVED_STAGE_CODE"
        assert body["details"]["code"] == "interval_00_01"


class TestStagesInReports:
    def _baseline(self, make_project):
        return make_project(
            "PV-2023", name="Baseline",
            initial_survey_date=date(2023, 1, 1),
            contract_signed_at=date(2023, 1, 11),
            actual_meter_date=date(2023, 12, 31),
        )

    def _stage_row(self, summary):
        return next(line for line in summary.splitlines() if line.startswith("| 1 |"))

    def test_rejected_redefinition_leaves_report_row_intact(self, client, make_project):
        base = self._baseline(make_project)
        client.post("/comparison/stages", json={
            "code": "interval_00_01", "label": "Survey to meter", "from_step": 0, "to_step": 10,
        })
        r = client.post("/comparison/legal-summary", json={"baseline_id": base.id})
        assert self._stage_row(r.text) == "| 1 | Survey → Signed | 10d (baseline) | - |"

        r = client.post("/comparison", json={"baseline_id": base.id})
        assert r.json()["results"][0]["intervals"]["interval_00_01"]["days"] == 10

    def test_stored_row_with_builtin_id_does_not_relabel_data(self, client, db, make_project):
        base = self._baseline(make_project)
        db.add(ComparisonStage(code="interval_00_01", label="Survey to meter", from_step=0, to_step=10))
        db.commit()

        r = client.post("/comparison/legal-summary", json={"baseline_id": base.id})
        assert r.status_code == 200
        assert self._stage_row(r.text) == "| 1 | Survey → Signed | 10d (baseline) | - |"
        assert "364" not in r.text

    def test_user_stage_listed_in_summary(self, client, make_project):
        base = self._baseline(make_project)
        client.post("/comparison/stages", json={
            "code": "survey_to_meter", "label": "Survey to meter", "from_step": 0, "to_step": 10,
        })
        r = client.post("/comparison/legal-summary", json={
            "baseline_id": base.id, "selected_intervals": ["survey_to_meter"],
        })
        assert "**Survey to meter**" in r.text
        assert "  - [baseline] Baseline: 364 days" in r.text
        assert "### 4. Stage duration table" not in r.text

    def test_csv_columns_unaffected_by_user_stages(self, client, make_project):
        base = self._baseline(make_project)
        client.post("/comparison/stages", json={
            "code": "survey_to_meter", "label": "Survey to meter", "from_step": 0, "to_step": 10,
        })
        r = client.post("/comparison/csv", json={"baseline_id": base.id})
        header = r.content.decode("utf-8-sig").splitlines()[0]
        assert header.endswith("Construction to meter (days)")
        assert "Survey to meter" not in header
