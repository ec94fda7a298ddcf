"""
Session / Run 持久化接口
"""
import json

API = "/api/v1"


def make_run(session_id, **overrides):
    run = {
        "sessionId": session_id,
        "name": "Random Forest baseline",
        "code": "model = RandomForestClassifier()\nprint('ACCURACY: 0.91')",
        "accuracy": 0.91,
        "modelType": "RandomForestClassifier",
        "precision": 0.9,
        "recall": 0.88,
        "f1Score": 0.89,
        "datasetRows": 150,
        "datasetColumns": 5,
        "datasetFeatures": json.dumps(["a", "b", "c", "d"]),
        "confusionMatrix": json.dumps([[50, 0], [3, 47]]),
        "stdout": "ACCURACY: 0.91\n",
        "error": None,
        "isImproved": False,
        "explanation": "baseline",
    }
    run.update(overrides)
    return run


class TestSessions:

    def test_create_session_with_default_name(self, client):
        r = client.post(f"{API}/sessions", json={})
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["name"] == "Untitled Session"
        assert data["id"]
        assert data["createdAt"]
        assert data["updatedAt"]

    def test_get_session_includes_runs(self, client, session_id):
        client.post(f"{API}/runs", json=make_run(session_id))
        data = client.get(f"{API}/sessions/{session_id}").json()["data"]
        assert data["id"] == session_id
        assert data["name"] == "test"
        assert len(data["runs"]) == 1
        assert data["runs"][0]["modelType"] == "RandomForestClassifier"

    def test_unknown_session_is_404(self, client):
        r = client.get(f"{API}/sessions/does-not-exist")
        assert r.status_code == 404
        assert r.json() == {"error": {"message": "Session not found", "code": "NOT_FOUND"}}

    def test_saving_run_touches_session(self, client, session_id):
        before = client.get(f"{API}/sessions/{session_id}").json()["data"]["updatedAt"]
        client.post(f"{API}/runs", json=make_run(session_id))
        after = client.get(f"{API}/sessions/{session_id}").json()["data"]["updatedAt"]
        assert after >= before


class TestRuns:

    def test_saved_run_round_trips_unchanged(self, client, session_id):
        submitted = make_run(session_id)
        created = client.post(f"{API}/runs", json=submitted).json()["data"]

        for key, value in submitted.items():
            assert created[key] == value, key

        first = client.get(f"{API}/runs/{session_id}").json()["data"]
        second = client.get(f"{API}/runs/{session_id}").json()["data"]
        assert first == [created]
        assert second == first

    def test_optional_fields_default(self, client, session_id):
        r = client.post(f"{API}/runs", json={
            "sessionId": session_id,
            "name": "minimal",
            "code": "print(1)",
            "accuracy": 0.5,
            "modelType": "LinearRegression",
        })
        data = r.json()["data"]
        assert data["isImproved"] is False
        assert data["precision"] is None
        assert data["confusionMatrix"] is None

    def test_runs_sorted_by_accuracy_desc(self, client, session_id):
        for name, acc in [("a", 0.5), ("b", 0.9), ("c", 0.7)]:
            client.post(f"{API}/runs", json=make_run(session_id, name=name, accuracy=acc))
        runs = client.get(f"{API}/runs/{session_id}").json()["data"]
        assert [r["name"] for r in runs] == ["b", "c", "a"]

    def test_save_run_unknown_session_is_404(self, client):
        r = client.post(f"{API}/runs", json=make_run("missing"))
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "NOT_FOUND"

    def test_list_runs_unknown_session_is_404(self, client):
        r = client.get(f"{API}/runs/missing")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "NOT_FOUND"

    def test_missing_required_field_is_validation_error(self, client, session_id):
        run = make_run(session_id)
        del run["accuracy"]
        r = client.post(f"{API}/runs", json=run)
        assert r.status_code == 400
        error = r.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "accuracy" in error["message"]
