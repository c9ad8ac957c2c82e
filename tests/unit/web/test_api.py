"""HTTP tests for the FastAPI application."""

from tmtickets.core.storage.memory import MemoryReferenceStore


class TestLiveness:
    """Tests for root level liveness endpoints."""

    def test_health(self, client):
        """Test that /health reports healthy."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_ping(self, client):
        """Test that /ping answers with plain text OK."""
        response = client.get("/ping")
        assert response.status_code == 200
        assert response.text == "OK"


class TestTicketNumbers:
    """Tests for GET /api/tickets/next-number."""

    def test_numbers_are_sequential(self, client):
        """Test that each request allocates the next number."""
        first = client.get("/api/tickets/next-number")
        second = client.get("/api/tickets/next-number")
        assert first.status_code == 200
        assert first.json() == {"ticketNumber": "T-1000"}
        assert second.json() == {"ticketNumber": "T-1001"}

    def test_contention_returns_503(self, client, backend):
        """Test that an exhausted retry budget maps to 503 with Retry-After."""
        backend.counters.always_conflict = True
        response = client.get("/api/tickets/next-number")
        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
        assert response.json() == {"message": "Sequence contention, try again", "type": "sequence_contention"}

    def test_storage_failure_returns_500(self, client, backend):
        """Test that an unavailable store maps to 500 without leaking details."""
        backend.counters.unavailable = True
        response = client.get("/api/tickets/next-number")
        assert response.status_code == 500
        assert response.json() == {"message": "Storage unavailable.", "type": "storage_error"}


class TestDrafts:
    """Tests for the draft endpoints."""

    def test_save_get_list_delete(self, client):
        """Test the full draft lifecycle over HTTP."""
        body = {"id": "d1", "jobNumber": "J-1", "jobName": "Alpha", "date": "2025-01-03", "labor": [{"hours": 2}]}

        saved = client.post("/api/tickets/draft", json=body)
        assert saved.status_code == 201
        assert saved.json()["id"] == "d1"
        saved_at = saved.json()["savedAt"]

        loaded = client.get("/api/tickets/draft/d1")
        assert loaded.status_code == 200
        assert loaded.json() == {**body, "savedAt": saved_at}

        listed = client.get("/api/tickets/draft", params={"jobNumber": "J-1"})
        assert listed.status_code == 200
        assert listed.json() == {"items": [{"id": "d1", "jobNumber": "J-1", "jobName": "Alpha", "date": "2025-01-03"}]}

        deleted = client.delete("/api/tickets/draft/d1")
        assert deleted.status_code == 204
        assert client.get("/api/tickets/draft/d1").status_code == 404
        assert client.delete("/api/tickets/draft/d1").status_code == 404

    def test_list_omits_missing_optional_fields(self, client):
        """Test that summaries without jobName or date leave those keys out."""
        client.post("/api/tickets/draft", json={"id": "d2", "jobNumber": "J-2"})
        listed = client.get("/api/tickets/draft", params={"jobNumber": "J-2"})
        assert listed.json() == {"items": [{"id": "d2", "jobNumber": "J-2"}]}

    def test_list_newest_first(self, client):
        """Test that drafts are listed by date descending."""
        for draft_id, date in [("old", "2025-01-01"), ("new", "2025-06-01"), ("mid", "2025-03-01")]:
            client.post("/api/tickets/draft", json={"id": draft_id, "jobNumber": "J-3", "date": date})
        listed = client.get("/api/tickets/draft", params={"jobNumber": "J-3"})
        assert [item["id"] for item in listed.json()["items"]] == ["new", "mid", "old"]

    def test_list_unknown_job_is_empty(self, client):
        """Test that listing a job without drafts returns an empty list."""
        listed = client.get("/api/tickets/draft", params={"jobNumber": "J-404"})
        assert listed.status_code == 200
        assert listed.json() == {"items": []}

    def test_list_without_job_number(self, client):
        """Test that listing without jobNumber is a 400."""
        response = client.get("/api/tickets/draft")
        assert response.status_code == 400
        assert response.json() == {"message": "Missing jobNumber", "type": "validation_error"}

    def test_save_without_body(self, client):
        """Test that saving without a body is a 400."""
        response = client.post("/api/tickets/draft")
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_save_without_job_number(self, client):
        """Test that saving without jobNumber is a 400."""
        response = client.post("/api/tickets/draft", json={"jobName": "Alpha"})
        assert response.status_code == 400
        assert response.json() == {"message": "Missing jobNumber", "type": "validation_error"}

    def test_get_unknown_draft(self, client):
        """Test that an unknown draft id is a 404."""
        response = client.get("/api/tickets/draft/nope")
        assert response.status_code == 404
        assert response.json() == {"message": "Draft 'nope' not found", "type": "not_found"}

    def test_storage_failure_on_read(self, client, backend):
        """Test that a failing draft store maps to 500."""
        client.post("/api/tickets/draft", json={"id": "d3", "jobNumber": "J-1"})
        backend.drafts.unavailable = True
        response = client.get("/api/tickets/draft/d3")
        assert response.status_code == 500
        assert response.json()["type"] == "storage_error"


class TestReference:
    """Tests for the reference endpoints."""

    def setup_reference(self, backend):
        backend.reference = MemoryReferenceStore(
            [
                {"partition": "job-numbers", "rowKey": "J-100", "Description": "North Plant", "pmName": "Lee"},
                {"partition": "job-numbers", "rowKey": "J-200", "Description": "Depot"},
                {"partition": "technician", "rowKey": "t1", "TechName": "Rosa Diaz"},
                {"partition": "technician", "rowKey": "t2", "TechName": "Amy Santiago"},
                {"partition": "materials", "rowKey": "m1", "Name": "Relay"},
            ]
        )

    def test_list_job_numbers(self, client, backend):
        """Test that job numbers are listed with PascalCase keys."""
        self.setup_reference(backend)
        response = client.get("/api/reference/job-numbers", params={"prefix": "j-1"})
        assert response.status_code == 200
        assert response.json() == {
            "items": [
                {"RowKey": "J-100", "JobNumber": "J-100", "Description": "North Plant", "CustomerName": None, "Status": None}
            ]
        }

    def test_get_job_number(self, client, backend):
        """Test that a single job includes its partition and project manager."""
        self.setup_reference(backend)
        response = client.get("/api/reference/job-numbers/j-100")
        assert response.status_code == 200
        data = response.json()
        assert data["RowKey"] == "J-100"
        assert data["PartitionKey"] == "job-numbers"
        assert data["projectManager"] == "Lee"

    def test_get_unknown_job_number(self, client, backend):
        """Test that an unknown job number is a 404."""
        self.setup_reference(backend)
        response = client.get("/api/reference/job-numbers/J-999")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_list_technicians(self, client, backend):
        """Test that technicians are filtered by name prefix."""
        self.setup_reference(backend)
        response = client.get("/api/reference/technicians", params={"prefix": "am"})
        assert response.status_code == 200
        assert response.json() == {"items": [{"RowKey": "t2", "TechName": "Amy Santiago"}]}

    def test_generic_partition(self, client, backend):
        """Test that any partition can be read whole."""
        self.setup_reference(backend)
        response = client.get("/api/reference/materials")
        assert response.status_code == 200
        assert response.json() == {
            "partition": "materials",
            "items": [{"partition": "materials", "rowKey": "m1", "Name": "Relay"}],
        }
