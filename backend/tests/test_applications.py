import uuid

from fastapi.testclient import TestClient

from jobboard.errors import CounterConsistencyError
from jobboard.main import app
from jobboard.models import JobApplication, Notification
from jobboard.services.application_service import ApplicationService

from conftest import API


class TestApply:
    def test_apply_scenario_notifies_employer(self, client, seed, test_db):
        employer = seed.employer()
        job_id = seed.job(employer)
        applicant = seed.jobseeker(sections=("contact", "bio", "skills", "links"))  # 80%

        r = client.post(f"{API}/jobs/{job_id}/apply", json={
            "coverLetter": "I would love to join.",
            "expectedSalary": 4000,
            "availabilityDate": "2026-12-01",
        }, headers=applicant.headers)
        assert r.status_code == 201
        body = r.json()
        assert body["success"] is True
        application = body["data"]
        assert application["status"] == "pending"
        assert application["cover_letter"] == "I would love to join."
        assert application["availability_date"] == "2026-12-01"
        assert seed.applications_count(job_id) == 1

        r = client.get(f"{API}/notifications", headers=employer.headers)
        assert r.status_code == 200
        notifications = r.json()["data"]["notifications"]
        assert len(notifications) == 1
        n = notifications[0]
        assert n["type"] == "application_received"
        assert n["user_id"] == employer.id
        assert n["title"] == "New Application"
        assert n["metadata"]["application_id"] == application["id"]
        assert n["metadata"]["job_id"] == job_id
        assert n["metadata"]["applicant_name"] == "Ada Lovelace"
        assert n["related_id"] == job_id

    def test_applicant_gets_no_employer_notification(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        applicant = seed.jobseeker()
        client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)

        r = client.get(f"{API}/notifications", headers=applicant.headers)
        assert r.json()["data"]["notifications"] == []

    def test_snake_case_body_accepted(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        r = client.post(f"{API}/jobs/{job_id}/apply", json={
            "cover_letter": "Hello",
            "portfolio_url": "https://ada.dev",
        }, headers=applicant.headers)
        assert r.status_code == 201
        assert r.json()["data"]["portfolio_url"] == "https://ada.dev"

    def test_duplicate_application_conflicts(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)

        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
        assert r.status_code == 409
        assert r.json() == {"success": False, "message": "You have already applied to this job"}
        assert seed.applications_count(job_id) == 1

    def test_closed_job_rejected(self, client, seed):
        job_id = seed.job(seed.employer(), status="closed")
        applicant = seed.jobseeker()
        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
        assert r.status_code == 404
        assert r.json()["message"] == "Job not found or not accepting applications"
        assert seed.applications_count(job_id) == 0

    def test_unknown_job_rejected(self, client, seed):
        applicant = seed.jobseeker()
        r = client.post(f"{API}/jobs/{uuid.uuid4()}/apply", json={}, headers=applicant.headers)
        assert r.status_code == 404

    def test_incomplete_profile_rejected_with_percentage(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker(sections=("contact", "bio", "skills"))  # 60%
        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
        assert r.status_code == 400
        message = r.json()["message"]
        assert "60%" in message
        assert "70%" in message
        assert "LinkedIn" in message
        assert seed.applications_count(job_id) == 0

    def test_missing_profile_rejected(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker(with_profile=False)
        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
        assert r.status_code == 404
        assert "Profile not found" in r.json()["message"]

    def test_foreign_resume_rejected(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        other = seed.jobseeker()
        resume_id = seed.resume(other)
        r = client.post(f"{API}/jobs/{job_id}/apply", json={"resumeId": resume_id}, headers=applicant.headers)
        assert r.status_code == 400
        assert r.json()["message"] == "Invalid resume ID"
        assert seed.applications_count(job_id) == 0

    def test_own_resume_accepted(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        resume_id = seed.resume(applicant)
        r = client.post(f"{API}/jobs/{job_id}/apply", json={"resumeId": resume_id}, headers=applicant.headers)
        assert r.status_code == 201
        assert r.json()["data"]["resume_id"] == resume_id

    def test_employer_cannot_apply(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=employer.headers)
        assert r.status_code == 403

    def test_malformed_job_id(self, client, seed):
        applicant = seed.jobseeker()
        r = client.post(f"{API}/jobs/not-a-uuid/apply", json={}, headers=applicant.headers)
        assert r.status_code == 400
        assert r.json()["success"] is False

    def test_negative_salary_is_validation_error(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        r = client.post(f"{API}/jobs/{job_id}/apply", json={"expectedSalary": -5}, headers=applicant.headers)
        assert r.status_code == 400

    def test_requires_auth(self, client, seed):
        job_id = seed.job(seed.employer())
        r = client.post(f"{API}/jobs/{job_id}/apply", json={})
        assert r.status_code == 401
        assert r.json() == {"success": False, "message": "Missing bearer token"}

    def test_rejects_unknown_token(self, client, seed):
        job_id = seed.job(seed.employer())
        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401

    def test_reapply_after_withdrawal_creates_fresh_row(self, client, seed, test_db):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        first = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers).json()["data"]
        client.delete(f"{API}/applications/{first['id']}", headers=applicant.headers)
        assert seed.applications_count(job_id) == 0

        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
        assert r.status_code == 201
        second = r.json()["data"]
        assert second["id"] != first["id"]
        assert second["status"] == "pending"
        assert seed.applications_count(job_id) == 1

        with test_db() as db:
            rows = db.query(JobApplication).filter(JobApplication.job_id == job_id).all()
            assert [a.id for a in rows] == [second["id"]]


class TestWithdraw:
    def _apply(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        applicant = seed.jobseeker()
        r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
        return employer, job_id, applicant, r.json()["data"]["id"]

    def test_withdraw_twice_scenario(self, client, seed):
        _, job_id, applicant, application_id = self._apply(client, seed)
        assert seed.applications_count(job_id) == 1

        r = client.delete(f"{API}/applications/{application_id}", headers=applicant.headers)
        assert r.status_code == 200
        assert r.json()["success"] is True
        assert r.json()["data"]["status"] == "withdrawn"
        assert seed.applications_count(job_id) == 0

        r = client.delete(f"{API}/applications/{application_id}", headers=applicant.headers)
        assert r.status_code == 409
        assert r.json()["success"] is False
        assert "already withdrawn" in r.json()["message"]
        assert seed.applications_count(job_id) == 0

    def test_withdraw_by_job(self, client, seed):
        _, job_id, applicant, application_id = self._apply(client, seed)
        r = client.delete(f"{API}/jobs/{job_id}/withdraw", headers=applicant.headers)
        assert r.status_code == 200
        assert r.json()["data"]["id"] == application_id
        assert seed.applications_count(job_id) == 0

        r = client.delete(f"{API}/jobs/{job_id}/withdraw", headers=applicant.headers)
        assert r.status_code == 409
        assert "already withdrawn" in r.json()["message"]
        assert seed.applications_count(job_id) == 0

    def test_withdraw_by_job_without_application(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        r = client.delete(f"{API}/jobs/{job_id}/withdraw", headers=applicant.headers)
        assert r.status_code == 404

    def test_cannot_withdraw_someone_elses_application(self, client, seed):
        _, job_id, _, application_id = self._apply(client, seed)
        intruder = seed.jobseeker()
        r = client.delete(f"{API}/applications/{application_id}", headers=intruder.headers)
        assert r.status_code == 404
        assert seed.applications_count(job_id) == 1

    def test_terminal_status_blocks_withdraw_and_update(self, client, seed):
        employer, job_id, applicant, application_id = self._apply(client, seed)
        r = client.put(f"{API}/applications/{application_id}/status",
                       json={"status": "accepted"}, headers=employer.headers)
        assert r.status_code == 200

        r = client.delete(f"{API}/applications/{application_id}", headers=applicant.headers)
        assert r.status_code == 409
        assert "accepted" in r.json()["message"]

        r = client.put(f"{API}/applications/{application_id}",
                       json={"coverLetter": "changed"}, headers=applicant.headers)
        assert r.status_code == 409
        assert "accepted" in r.json()["message"]
        assert seed.applications_count(job_id) == 1

    def test_shortlisted_application_can_be_withdrawn(self, client, seed):
        employer, job_id, applicant, application_id = self._apply(client, seed)
        client.put(f"{API}/applications/{application_id}/status",
                   json={"status": "shortlisted"}, headers=employer.headers)
        r = client.delete(f"{API}/applications/{application_id}", headers=applicant.headers)
        assert r.status_code == 200
        assert seed.applications_count(job_id) == 0


class TestUpdateApplication:
    def test_update_pending(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        app_id = client.post(f"{API}/jobs/{job_id}/apply", json={"coverLetter": "v1"},
                             headers=applicant.headers).json()["data"]["id"]

        r = client.put(f"{API}/applications/{app_id}", json={"coverLetter": "v2", "expectedSalary": 5000},
                       headers=applicant.headers)
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["cover_letter"] == "v2"
        assert data["expected_salary"] == 5000

    def test_update_requires_fields(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        app_id = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers).json()["data"]["id"]
        r = client.put(f"{API}/applications/{app_id}", json={}, headers=applicant.headers)
        assert r.status_code == 400
        assert r.json()["message"] == "No valid fields to update"

    def test_update_withdrawn_rejected(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        app_id = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers).json()["data"]["id"]
        client.delete(f"{API}/applications/{app_id}", headers=applicant.headers)
        r = client.put(f"{API}/applications/{app_id}", json={"coverLetter": "x"}, headers=applicant.headers)
        assert r.status_code == 409


class TestEmployerStatusChange:
    def test_status_change_notifies_jobseeker(self, client, seed):
        employer = seed.employer(company_name="Globex")
        job_id = seed.job(employer, title="Data Engineer")
        applicant = seed.jobseeker()
        app_id = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers).json()["data"]["id"]

        r = client.put(f"{API}/applications/{app_id}/status", json={"status": "shortlisted"},
                       headers=employer.headers)
        assert r.status_code == 200
        assert r.json()["data"]["status"] == "shortlisted"

        notifications = client.get(f"{API}/notifications", headers=applicant.headers).json()["data"]["notifications"]
        assert len(notifications) == 1
        n = notifications[0]
        assert n["type"] == "application_shortlisted"
        assert n["message"] == "Congratulations! You've been shortlisted for Data Engineer at Globex"
        assert n["metadata"]["application_id"] == app_id
        assert n["metadata"]["status"] == "shortlisted"

    def test_other_employer_forbidden(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        app_id = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers).json()["data"]["id"]
        rival = seed.employer(company_name="Initech")
        r = client.put(f"{API}/applications/{app_id}/status", json={"status": "rejected"}, headers=rival.headers)
        assert r.status_code == 403

    def test_terminal_decision_is_final(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        applicant = seed.jobseeker()
        app_id = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers).json()["data"]["id"]
        client.put(f"{API}/applications/{app_id}/status", json={"status": "rejected"}, headers=employer.headers)
        r = client.put(f"{API}/applications/{app_id}/status", json={"status": "accepted"}, headers=employer.headers)
        assert r.status_code == 409

    def test_withdrawn_application_cannot_be_reviewed(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        applicant = seed.jobseeker()
        app_id = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers).json()["data"]["id"]
        client.delete(f"{API}/applications/{app_id}", headers=applicant.headers)
        r = client.put(f"{API}/applications/{app_id}/status", json={"status": "reviewed"}, headers=employer.headers)
        assert r.status_code == 409

    def test_invalid_status_value(self, client, seed):
        employer = seed.employer()
        r = client.put(f"{API}/applications/{uuid.uuid4()}/status", json={"status": "withdrawn"},
                       headers=employer.headers)
        assert r.status_code == 400


class TestApplicationQueries:
    def test_applied_jobs_and_stats(self, client, seed):
        employer = seed.employer(company_name="Umbrella")
        jobs = [seed.job(employer, title=f"Role {i}") for i in range(3)]
        applicant = seed.jobseeker()
        ids = [
            client.post(f"{API}/jobs/{j}/apply", json={}, headers=applicant.headers).json()["data"]["id"]
            for j in jobs
        ]
        client.delete(f"{API}/applications/{ids[0]}", headers=applicant.headers)
        seed.bookmark(applicant, jobs[1])

        r = client.get(f"{API}/applications", headers=applicant.headers)
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["total"] == 3
        assert {a["job"]["company_name"] for a in data["applications"]} == {"Umbrella"}

        r = client.get(f"{API}/applications?status=withdrawn", headers=applicant.headers)
        assert r.json()["data"]["total"] == 1

        stats = client.get(f"{API}/applications/stats", headers=applicant.headers).json()["data"]
        assert stats["total_applications"] == 3
        assert stats["pending_applications"] == 2
        assert stats["withdrawn_applications"] == 1
        assert stats["total_saved_jobs"] == 1
        assert stats["applications_this_month"] == 3

    def test_application_status_for_job(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        r = client.get(f"{API}/jobs/{job_id}/application-status", headers=applicant.headers)
        assert r.status_code == 200
        assert r.json()["data"] is None

        client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
        r = client.get(f"{API}/jobs/{job_id}/application-status", headers=applicant.headers)
        assert r.json()["data"]["status"] == "pending"


def test_notifications_only_reference_committed_applications(client, seed, test_db):
    job_id = seed.job(seed.employer())
    applicant = seed.jobseeker()
    client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
    with test_db() as db:
        application_ids = {a.id for a in db.query(JobApplication).all()}
        for n in db.query(Notification).all():
            assert n.type == "application_received"
            assert any(app_id in n.metadata_json for app_id in application_ids)


def test_consistency_fault_returns_500_envelope(seed, test_db, monkeypatch):
    def fail_increment(self, job_id, delta):
        raise CounterConsistencyError(f"Could not increment applications_count for job {job_id}")

    monkeypatch.setattr(ApplicationService, "_move_counter", fail_increment)
    employer = seed.employer()
    job_id = seed.job(employer)
    applicant = seed.jobseeker()

    client = TestClient(app, raise_server_exceptions=False)
    r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Internal server error"}
    assert seed.applications_count(job_id) == 0
    with test_db() as db:
        assert db.query(JobApplication).count() == 0
        assert db.query(Notification).count() == 0


class TestJobApplicationsForEmployer:
    def _applicants(self, client, seed, job_id, count):
        ids = []
        for _ in range(count):
            applicant = seed.jobseeker()
            r = client.post(f"{API}/jobs/{job_id}/apply", json={}, headers=applicant.headers)
            ids.append(r.json()["data"]["id"])
        return ids

    def test_lists_applicants_with_names(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        ids = self._applicants(client, seed, job_id, 2)

        r = client.get(f"{API}/jobs/{job_id}/applications", headers=employer.headers)
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["total"] == 2
        assert {a["id"] for a in data["applications"]} == set(ids)
        assert {a["applicant_name"] for a in data["applications"]} == {"Ada Lovelace"}
        assert all(a["applicant_email"].endswith("@example.com") for a in data["applications"])

    def test_status_filter(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        ids = self._applicants(client, seed, job_id, 3)
        client.put(f"{API}/applications/{ids[1]}/status", json={"status": "shortlisted"}, headers=employer.headers)

        data = client.get(f"{API}/jobs/{job_id}/applications?status=shortlisted",
                          headers=employer.headers).json()["data"]
        assert data["total"] == 1
        assert [a["id"] for a in data["applications"]] == [ids[1]]
        assert data["applications"][0]["status"] == "shortlisted"

    def test_paging(self, client, seed):
        employer = seed.employer()
        job_id = seed.job(employer)
        ids = self._applicants(client, seed, job_id, 5)

        seen = []
        for page in (1, 2, 3):
            data = client.get(f"{API}/jobs/{job_id}/applications?page={page}&limit=2",
                              headers=employer.headers).json()["data"]
            assert data["total"] == 5
            assert data["page"] == page
            assert data["per_page"] == 2
            seen.extend(a["id"] for a in data["applications"])
        assert len(seen) == 5
        assert set(seen) == set(ids)

    def test_other_employer_forbidden(self, client, seed):
        job_id = seed.job(seed.employer())
        self._applicants(client, seed, job_id, 1)
        rival = seed.employer(company_name="Initech")
        r = client.get(f"{API}/jobs/{job_id}/applications", headers=rival.headers)
        assert r.status_code == 403
        assert r.json()["success"] is False

    def test_unknown_job(self, client, seed):
        employer = seed.employer()
        r = client.get(f"{API}/jobs/{uuid.uuid4()}/applications", headers=employer.headers)
        assert r.status_code == 404

    def test_jobseeker_forbidden(self, client, seed):
        job_id = seed.job(seed.employer())
        applicant = seed.jobseeker()
        assert client.get(f"{API}/jobs/{job_id}/applications", headers=applicant.headers).status_code == 403
