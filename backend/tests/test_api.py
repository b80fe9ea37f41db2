"""
End-to-end flows through the REST API with in-memory storage and a frozen clock.
"""

import pytest
from conftest import signup_and_login
from vitalguard.schemas.enums import Page
from vitalguard.services.summary_service import TemplateCareAI

CRITICAL_VITALS = {
    "heart_rate": 130,
    "systolic_bp": 145,
    "diastolic_bp": 90,
    "spo2": 89,
    "temperature": 37.2,
    "respiratory_rate": 22,
}

NORMAL_VITALS = {
    "heart_rate": 78,
    "systolic_bp": 120,
    "diastolic_bp": 80,
    "spo2": 98,
    "temperature": 36.8,
    "respiratory_rate": 16,
}


@pytest.fixture
def patient_id(client, admin_headers, patient_payload):
    response = client.post("/api/patients", json=patient_payload, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def doctor_headers(client, admin_headers, patient_id):
    return signup_and_login(client, "Dr. House", "house@example.com", "DOCTOR", admin_headers)


class TestAuth:
    def test_health(self, client):
        assert client.get("/api/health").json()["status"] == "healthy"

    def test_missing_token(self, client):
        assert client.get("/api/patients").status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/api/patients", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_signup_validation_is_400(self, client):
        response = client.post("/api/auth/signup", json={"name": "", "email": "x@example.com", "role": "PATIENT"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Name and a valid email are required."

    def test_duplicate_signup(self, client, admin_headers):
        response = client.post(
            "/api/auth/signup", json={"name": "Again", "email": "admin@example.com", "role": "ADMIN"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Account already exists. Use Login."

    def test_pending_staff_login_refused(self, client):
        client.post("/api/auth/signup", json={"name": "Nurse Joy", "email": "joy@example.com", "role": "NURSE"})
        response = client.post("/api/auth/login", json={"email": "joy@example.com", "role": "NURSE"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Your account is pending admin approval."

    def test_me(self, client, admin_headers):
        me = client.get("/api/auth/me", headers=admin_headers).json()
        assert me["uid"] == "ADM-0001"
        assert me["approvalStatus"] == "APPROVED"

    def test_approval_auto_assigns(self, client, admin_headers, patient_id):
        headers = signup_and_login(client, "Dr. House", "house@example.com", "DOCTOR", admin_headers)
        me = client.get("/api/auth/me", headers=headers).json()
        assert me["assignedPatientIds"] == [patient_id]

    def test_only_admin_lists_users(self, client, doctor_headers, admin_headers):
        assert client.get("/api/auth/users", headers=doctor_headers).status_code == 403
        users = client.get("/api/auth/users", headers=admin_headers).json()
        assert {u["role"] for u in users} == {"ADMIN", "DOCTOR"}

    def test_manual_assignment(self, client, admin_headers, doctor_headers, patient_payload):
        second = client.post(
            "/api/patients", json={**patient_payload, "name": "Maria Garcia"}, headers=admin_headers
        ).json()
        response = client.put(
            "/api/auth/users/DOC-0001/assignments",
            json={"patient_ids": [second["id"]]},
            headers=admin_headers,
        )
        assert response.json()["statusMessage"] == "Assigned 1 patient(s)"
        names = [p["name"] for p in client.get("/api/patients", headers=doctor_headers).json()["patients"]]
        assert names == ["Maria Garcia"]

    def test_logout_is_audited(self, client, admin_headers):
        client.post("/api/auth/logout", headers=admin_headers)
        entries = client.get("/api/audit", headers=admin_headers).json()
        assert entries[0]["action"] == "Logged out"
        assert entries[0]["target"] == "ADMIN"


class TestPatients:
    def test_create_maps_to_client_vocabulary(self, client, admin_headers, patient_payload):
        body = client.post("/api/patients", json=patient_payload, headers=admin_headers).json()
        assert body["displayId"] == "PT-0001"
        assert body["roomId"] == "101"
        assert body["careMode"] == "MONITORED"
        assert body["statusLevel"] == "STABLE"
        assert body["vitalsHistory"] == []

    def test_admin_sees_all_newest_first(self, client, admin_headers, patient_payload, clock):
        client.post("/api/patients", json=patient_payload, headers=admin_headers)
        clock.advance(minutes=5)
        client.post("/api/patients", json={**patient_payload, "name": "Sarah Smith"}, headers=admin_headers)
        body = client.get("/api/patients", headers=admin_headers).json()
        assert body["total"] == 2
        assert [p["name"] for p in body["patients"]] == ["Sarah Smith", "John Doe"]

    def test_unknown_patient_is_404(self, client, admin_headers):
        assert client.get("/api/patients/does-not-exist", headers=admin_headers).status_code == 404

    def test_out_of_scope_patient_is_403(self, client, admin_headers, doctor_headers, patient_payload):
        other = client.post(
            "/api/patients", json={**patient_payload, "name": "Sarah Smith"}, headers=admin_headers
        ).json()
        assert client.get(f"/api/patients/{other['id']}", headers=doctor_headers).status_code == 403

    def test_view_is_audited(self, client, admin_headers, patient_id):
        client.get(f"/api/patients/{patient_id}", headers=admin_headers)
        entry = client.get("/api/audit", headers=admin_headers).json()[0]
        assert entry["action"] == "Viewed patient record"
        assert entry["target"] == "John Doe (PT-0001)"
        assert entry["fingerprint"].startswith("0x")

    def test_update(self, client, admin_headers, patient_id):
        response = client.put(
            f"/api/patients/{patient_id}", json={"room": "204", "status": "attention"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["roomId"] == "204"
        assert response.json()["statusLevel"] == "ATTENTION"

    def test_update_rejects_unknown_status(self, client, admin_headers, patient_id):
        response = client.put(f"/api/patients/{patient_id}", json={"status": "deceased"}, headers=admin_headers)
        assert response.status_code == 400

    def test_update_with_null_leaves_field_unchanged(self, client, admin_headers, patient_id):
        response = client.put(
            f"/api/patients/{patient_id}", json={"name": None, "room": "305"}, headers=admin_headers
        )
        assert response.status_code == 200, response.text
        assert response.json()["name"] == "John Doe"
        assert response.json()["roomId"] == "305"

    def test_patient_role_cannot_create(self, client, patient_payload):
        headers = signup_and_login(client, "Jane Roe", "jane@example.com", "PATIENT")
        assert client.post("/api/patients", json=patient_payload, headers=headers).status_code == 403

    def test_critical_vitals_escalate_status(self, client, doctor_headers, patient_id):
        response = client.post(f"/api/patients/{patient_id}/vitals", json=CRITICAL_VITALS, headers=doctor_headers)
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["analysis"]["riskLevel"] == "CRITICAL"
        assert body["patient"]["statusLevel"] == "CRITICAL"
        assert body["sample"]["spO2"] == 89

        insights = client.get(f"/api/patients/{patient_id}/insights", headers=doctor_headers).json()
        assert insights["riskPercent"] == 90
        assert insights["abnormalFlags"] == ["Heart rate 130 bpm", "SpO2 89%"]

    def test_normal_vitals_keep_patient_stable(self, client, doctor_headers, patient_id):
        body = client.post(
            f"/api/patients/{patient_id}/vitals", json=NORMAL_VITALS, headers=doctor_headers
        ).json()
        assert body["patient"]["statusLevel"] == "STABLE"
        assert len(body["patient"]["vitalsHistory"]) == 1

    def test_dashboard_counts_visible_patients(self, client, admin_headers, doctor_headers, patient_payload):
        client.post("/api/patients", json={**patient_payload, "name": "Sarah Smith"}, headers=admin_headers)
        admin_stats = client.get("/api/dashboard/stats", headers=admin_headers).json()
        doctor_stats = client.get("/api/dashboard/stats", headers=doctor_headers).json()
        assert admin_stats["total_patients"] == 2
        assert admin_stats["monitored"] == 2
        assert doctor_stats["total_patients"] == 1
        assert doctor_stats["by_status"]["STABLE"] == 1


class TestSummaries:
    def test_summary_is_saved(self, client, doctor_headers, patient_id):
        client.get(f"/api/patients/{patient_id}", headers=doctor_headers)
        created = client.post(f"/api/patients/{patient_id}/summary", headers=doctor_headers).json()
        assert created["stale"] is False
        assert created["summary"]["overview"].startswith("John Doe")

        fetched = client.get(f"/api/patients/{patient_id}/summary", headers=doctor_headers).json()
        assert fetched["summary"] == created["summary"]

    def test_missing_summary_is_404(self, client, doctor_headers, patient_id):
        assert client.get(f"/api/patients/{patient_id}/summary", headers=doctor_headers).status_code == 404

    def test_summary_marked_stale_when_user_moves_on(self, client, registry, doctor_headers, patient_id):
        doctor = registry.identities.get("DOC-0001")

        class NavigatingAI(TemplateCareAI):
            async def summarize(self, record):
                # The user leaves for another page while the summary is generated.
                registry.sessions.navigate(doctor, Page.PATIENTS)
                return await super().summarize(record)

        registry.ai = NavigatingAI()
        body = client.post(f"/api/patients/{patient_id}/summary", headers=doctor_headers).json()
        assert body["stale"] is True


class TestDischarge:
    def test_discharge_flow(self, client, admin_headers, doctor_headers, patient_id, clock):
        client.post(f"/api/patients/{patient_id}/vitals", json=NORMAL_VITALS, headers=doctor_headers)
        clock.advance(days=2, hours=1)

        report = client.post(f"/api/patients/{patient_id}/discharge", headers=doctor_headers).json()
        assert report["length_of_stay"] == 3
        assert report["final_status"] == "stable"
        assert report["vitals_summary"]["total_readings"] == 1
        assert "discharged after 3 day(s)" in report["ai_discharge_summary"]

        assert client.get("/api/patients", headers=admin_headers).json()["total"] == 0
        discharged = client.get("/api/patients/discharged", headers=admin_headers).json()
        assert discharged["patients"][0]["active"] is False

        stored = client.get(f"/api/patients/{patient_id}/discharge-report", headers=doctor_headers)
        assert stored.status_code == 200
        assert stored.json()["patient_name"] == "John Doe"

    def test_nurse_cannot_discharge(self, client, admin_headers, patient_id):
        headers = signup_and_login(client, "Nurse Joy", "joy@example.com", "NURSE", admin_headers)
        assert client.post(f"/api/patients/{patient_id}/discharge", headers=headers).status_code == 403


class TestSessionNavigation:
    def test_doctor_cannot_open_audit_log(self, client, doctor_headers):
        client.post("/api/session/navigate", json={"page": "PATIENTS"}, headers=doctor_headers)
        state = client.post("/api/session/navigate", json={"page": "AUDIT_LOG"}, headers=doctor_headers).json()
        assert state["activePage"] == "PATIENTS"
        assert "AUDIT_LOG" not in state["allowedPages"]
        assert client.get("/api/audit", headers=doctor_headers).status_code == 403

    def test_patient_lands_on_panel(self, client):
        headers = signup_and_login(client, "Jane Roe", "jane@example.com", "PATIENT")
        state = client.get("/api/session", headers=headers).json()
        assert state["activePage"] == "PATIENT_PANEL"
        assert state["allowedPages"] == ["PATIENT_PANEL", "CONSENT"]


class TestConsentAndInterop:
    @pytest.fixture
    def patient_headers(self, client, patient_id):
        return signup_and_login(client, "John Doe", "john@example.com", "PATIENT")

    def grant(self, client, headers, **overrides):
        body = {"grantee_type": "HOSPITAL", "grantee_name": "H", "duration": "24H"}
        body.update(overrides)
        return client.post("/api/consents", json=body, headers=headers)

    def test_patient_sees_own_record_only(self, client, patient_headers, patient_id):
        patients = client.get("/api/patients", headers=patient_headers).json()["patients"]
        assert [p["id"] for p in patients] == [patient_id]

    def test_grant_and_revoke(self, client, patient_headers):
        grant = self.grant(client, patient_headers).json()
        assert grant["status"] == "ACTIVE"
        assert grant["expiresAt"] is not None

        revoked = client.post(f"/api/consents/{grant['id']}/revoke", headers=patient_headers)
        assert revoked.json()["status"] == "REVOKED"
        again = client.post(f"/api/consents/{grant['id']}/revoke", headers=patient_headers)
        assert again.status_code == 404

    def test_blank_grantee_is_400(self, client, patient_headers):
        assert self.grant(client, patient_headers, grantee_name="  ").status_code == 400

    def test_grantee_with_lone_surrogate_is_stored_as_text(self, client, patient_headers):
        response = client.post(
            "/api/consents",
            content='{"grantee_type": "HOSPITAL", "grantee_name": "H\\ud800", "duration": "24H"}',
            headers={**patient_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 201, response.text
        name = response.json()["granteeName"]
        assert name.startswith("H")
        assert "\ud800" not in name
        assert client.get("/api/consents", headers=patient_headers).json()[0]["granteeName"] == name

    def test_staff_cannot_list_consents(self, client, doctor_headers):
        assert client.get("/api/consents", headers=doctor_headers).status_code == 403

    def test_consent_expires_on_navigation(self, client, admin_headers, patient_headers, patient_id, clock):
        self.grant(client, patient_headers)

        clock.advance(hours=1)
        shared = client.post(
            "/api/interop/requests",
            json={"patient_id": patient_id, "hospital": "NorthCare Hospital"},
            headers=admin_headers,
        ).json()
        assert shared["consentValidated"] is True
        assert shared["stage"] == "granted"

        clock.advance(hours=24)
        state = client.post("/api/session/navigate", json={"page": "CONSENT"}, headers=patient_headers).json()
        assert state["expiredConsents"] == 1
        assert client.get("/api/consents", headers=patient_headers).json()[0]["status"] == "EXPIRED"

        denied = client.post(
            "/api/interop/requests",
            json={"patient_id": patient_id, "hospital": "NorthCare Hospital"},
            headers=admin_headers,
        ).json()
        assert denied["consentValidated"] is False

        entries = client.get("/api/audit", headers=admin_headers).json()
        assert entries[0]["action"] == "Interoperability denied (no consent)"
        assert entries[0]["target"] == "John Doe -> NorthCare Hospital"
        assert entries[1]["action"] == "Shared record with external hospital"

    def test_eligibility_endpoint(self, client, admin_headers, patient_headers):
        self.grant(client, patient_headers, grantee_type="DOCTOR", grantee_name="Dr. Who", duration="PERMANENT")
        response = client.get(
            "/api/consents/eligibility",
            params={"patient_name": "John Doe", "grantee_name": "Dr. Who"},
            headers=admin_headers,
        )
        assert response.json()["eligible"] is True

    def test_referrals(self, client, admin_headers, patient_id):
        referrals = client.get("/api/interop/referrals", headers=admin_headers).json()
        assert referrals[0]["hospital"] == "MetroCare External"
        assert referrals[0]["status"] == "RECEIVED"
        assert referrals[0]["patientUid"] == "PT-0001"


class TestIntegrityApi:
    def test_verify_and_tamper(self, client, doctor_headers, patient_id):
        verified = client.post(
            "/api/integrity/verify", json={"patient_id": patient_id}, headers=doctor_headers
        ).json()
        assert verified["status"] == "VERIFIED"
        assert verified["recordHash"] == verified["ledgerHash"]

        tampered = client.post(
            "/api/integrity/verify",
            json={"patient_id": patient_id, "simulate_tamper": True},
            headers=doctor_headers,
        ).json()
        assert tampered["status"] == "TAMPERED"
        assert tampered["recordHash"] == verified["recordHash"]

        proofs = client.get("/api/integrity/proofs", headers=doctor_headers).json()
        assert [p["status"] for p in proofs] == ["TAMPERED", "VERIFIED"]

    def test_nurse_cannot_verify(self, client, admin_headers, patient_id):
        headers = signup_and_login(client, "Nurse Joy", "joy@example.com", "NURSE", admin_headers)
        response = client.post("/api/integrity/verify", json={"patient_id": patient_id}, headers=headers)
        assert response.status_code == 403


class TestWithoutAutoAssignment:
    @pytest.fixture
    def registry(self, storage, clock):
        from vitalguard.config import get_settings
        from vitalguard.services.registry import build_registry

        settings = get_settings().model_copy(update={"auto_assign_patients": False})
        return build_registry(settings, storage=storage, clock=clock, ai=TemplateCareAI())

    def test_unassigned_doctor_sees_nothing(self, client, doctor_headers):
        assert client.get("/api/patients", headers=doctor_headers).json()["total"] == 0

    def test_unassigned_patient_sees_first_record(self, client, patient_id):
        headers = signup_and_login(client, "Jane Roe", "jane@example.com", "PATIENT")
        patients = client.get("/api/patients", headers=headers).json()["patients"]
        assert [p["id"] for p in patients] == [patient_id]
