"""Tests for the API permission guards, exercised through the HTTP routes."""
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic.core.config import settings
from clinic.core.errors import AccessDenied, access_denied_handler
from clinic.core.guards import PatientPermissions, UserPermissions, require_doctor, require_role
from clinic.core.permissions import Role
from clinic.core.security import create_access_token
from clinic.main import app
from clinic.models.base import Base, get_db, generate_uuid
from clinic.models.patient import Patient
from clinic.models.user import User
from clinic.services.permission_service import PermissionService
from clinic.services.user_repository import UserRepository


@pytest.fixture()
def session_factory():
    """Isolated in-memory SQLite database shared across the request threads."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def override_get_db(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()
    return _get_db


@pytest.fixture()
def client(override_get_db):
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(session_factory):
    def _make(role, email=None):
        db = session_factory()
        try:
            user_id = generate_uuid()
            db.add(User(
                id=user_id,
                email=email or f"{user_id}@clinic.test",
                username=user_id,
                role=role,
            ))
            db.commit()
            return user_id
        finally:
            db.close()
    return _make


@pytest.fixture()
def headers_for(make_user):
    def _headers(role):
        user_id = make_user(role)
        token = create_access_token({"sub": user_id})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture()
def patient_id(session_factory):
    db = session_factory()
    try:
        patient = Patient(id=generate_uuid(), mrn="MRN-100", first_name="Ada", last_name="Lovelace")
        db.add(patient)
        db.commit()
        return patient.id
    finally:
        db.close()


def _guarded_client(guard, override_get_db):
    """A bare app with one route behind ``guard``."""
    mini = FastAPI()
    mini.add_exception_handler(AccessDenied, access_denied_handler)
    mini.dependency_overrides[get_db] = override_get_db

    @mini.get("/guarded")
    def guarded(role: Role = Depends(guard)):
        return {"role": role.value}

    return TestClient(mini)


def _patient_active(session_factory, pid):
    db = session_factory()
    try:
        return db.get(Patient, pid).is_active
    finally:
        db.close()


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class TestAuthentication:
    def test_missing_token_is_401(self, client):
        res = client.get("/api/v1/patients/")
        assert res.status_code == 401
        assert res.json()["error"] == "Authentication required"
        assert res.json()["message"]

    def test_garbage_token_is_401(self, client):
        res = client.get("/api/v1/patients/", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401

    def test_health_is_open(self, client):
        assert client.get("/health").json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# require_permission
# ---------------------------------------------------------------------------

class TestRequirePermission:
    def test_technician_can_list_patients(self, client, headers_for, patient_id):
        res = client.get("/api/v1/patients/", headers=headers_for("technician"))
        assert res.status_code == 200
        assert [p["id"] for p in res.json()] == [patient_id]

    def test_technician_can_add_patient(self, client, headers_for):
        res = client.post(
            "/api/v1/patients/",
            json={"mrn": "MRN-200", "first_name": "Grace", "last_name": "Hopper"},
            headers=headers_for("technician"),
        )
        assert res.status_code == 201
        assert res.json()["mrn"] == "MRN-200"

    def test_technician_delete_is_rejected_without_side_effects(
        self, client, headers_for, patient_id, session_factory
    ):
        res = client.delete(f"/api/v1/patients/{patient_id}", headers=headers_for("technician"))
        assert res.status_code == 403
        body = res.json()
        assert body["error"] == "Insufficient permissions"
        assert body["userRole"] == "technician"
        assert body["requiredPermission"] == {"module": "patients", "action": "delete"}
        assert "Technician" in body["message"]
        assert _patient_active(session_factory, patient_id) is True

    def test_doctor_can_delete_patient(self, client, headers_for, patient_id, session_factory):
        res = client.delete(f"/api/v1/patients/{patient_id}", headers=headers_for("doctor"))
        assert res.status_code == 204
        assert _patient_active(session_factory, patient_id) is False

    def test_technician_cannot_export(self, client, headers_for):
        res = client.get("/api/v1/patients/export", headers=headers_for("technician"))
        assert res.status_code == 403
        assert res.json()["requiredPermission"]["action"] == "export"

    def test_doctor_export_is_csv(self, client, headers_for, patient_id):
        res = client.get("/api/v1/patients/export", headers=headers_for("doctor"))
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/csv")
        lines = res.text.strip().splitlines()
        assert lines[0].startswith("mrn,first_name,last_name")
        assert "MRN-100" in lines[1]

    def test_rejected_post_does_not_create(self, client, headers_for, session_factory):
        # Invalid role: rejected before the body is ever used.
        res = client.post(
            "/api/v1/patients/",
            json={"mrn": "MRN-300", "first_name": "X", "last_name": "Y"},
            headers=headers_for("janitor"),
        )
        assert res.status_code == 403
        db = session_factory()
        try:
            assert db.query(Patient).filter(Patient.mrn == "MRN-300").first() is None
        finally:
            db.close()

    def test_doctor_cannot_list_users(self, client, headers_for):
        res = client.get("/api/v1/users/", headers=headers_for("doctor"))
        assert res.status_code == 403
        assert res.json()["requiredPermission"] == {"module": "users", "action": "view"}

    def test_super_admin_sees_analytics(self, client, headers_for, patient_id):
        res = client.get("/api/v1/analytics/dashboard-stats", headers=headers_for("super_admin"))
        assert res.status_code == 200
        assert res.json()["total_patients"] == 1
        assert res.json()["users_by_role"] == {"super_admin": 1}


# ---------------------------------------------------------------------------
# Role validation and resolution
# ---------------------------------------------------------------------------

class TestRoleResolution:
    def test_unknown_role_is_invalid(self, client, headers_for):
        res = client.get("/api/v1/patients/", headers=headers_for("janitor"))
        assert res.status_code == 403
        assert res.json()["error"] == "Invalid role"

    def test_subject_without_user_record_is_invalid(self, client):
        token = create_access_token({"sub": "no-such-user"})
        res = client.get("/api/v1/patients/", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 403
        assert res.json()["error"] == "Invalid role"

    def test_role_change_applies_on_next_request(self, client, make_user, session_factory):
        user_id = make_user("technician")
        headers = {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}
        assert client.get("/api/v1/patients/export", headers=headers).status_code == 403

        db = session_factory()
        try:
            UserRepository(db).update_role(db.get(User, user_id), "doctor")
        finally:
            db.close()

        assert client.get("/api/v1/patients/export", headers=headers).status_code == 200

    def test_lookup_failure_fails_closed(self, client, headers_for, monkeypatch):
        headers = headers_for("technician")

        def boom(self, user_id):
            raise OperationalError("SELECT", {}, Exception("database is unavailable"))

        monkeypatch.setattr(UserRepository, "get_user", boom)
        res = client.get("/api/v1/patients/", headers=headers)
        assert res.status_code == 503
        assert res.json()["error"] == "Role resolution failed"

    def test_lookup_failure_uses_configured_fallback(self, client, headers_for, monkeypatch):
        headers = headers_for("super_admin")

        def boom(self, user_id):
            raise OperationalError("SELECT", {}, Exception("database is unavailable"))

        monkeypatch.setattr(UserRepository, "get_user", boom)
        monkeypatch.setattr(settings, "ROLE_RESOLUTION_FALLBACK", "technician")
        assert client.get("/api/v1/patients/", headers=headers).status_code == 200
        res = client.get("/api/v1/patients/export", headers=headers)
        assert res.status_code == 403
        assert res.json()["userRole"] == "technician"

    def test_undeclared_fallback_role_is_invalid(self, client, headers_for, monkeypatch):
        headers = headers_for("doctor")

        def boom(self, user_id):
            raise OperationalError("SELECT", {}, Exception("database is unavailable"))

        monkeypatch.setattr(UserRepository, "get_user", boom)
        monkeypatch.setattr(settings, "ROLE_RESOLUTION_FALLBACK", "janitor")
        res = client.get("/api/v1/patients/", headers=headers)
        assert res.status_code == 403
        assert res.json()["error"] == "Invalid role"

    def test_unexpected_error_is_generic_500(self, client, headers_for, monkeypatch):
        headers = headers_for("doctor")

        def broken(role, module, action):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(PermissionService, "can_perform_action", broken)
        res = client.get("/api/v1/patients/", headers=headers)
        assert res.status_code == 500
        assert res.json() == {
            "error": "Permission check failed",
            "message": "An error occurred while checking permissions",
        }


# ---------------------------------------------------------------------------
# require_role, require_module_access, require_valid_role
# ---------------------------------------------------------------------------

class TestOtherGuards:
    def test_require_role_accepts_a_role_string(self, override_get_db, headers_for):
        client = _guarded_client(require_role("super_admin"), override_get_db)
        assert client.get("/guarded", headers=headers_for("super_admin")).status_code == 200
        res = client.get("/guarded", headers=headers_for("doctor"))
        assert res.status_code == 403
        assert res.json()["error"] == "Insufficient role"
        assert res.json()["requiredRoles"] == ["super_admin"]

    def test_require_role_accepts_a_list_of_strings(self, override_get_db, headers_for):
        client = _guarded_client(require_role(["super_admin", "technician"]), override_get_db)
        assert client.get("/guarded", headers=headers_for("technician")).status_code == 200
        res = client.get("/guarded", headers=headers_for("doctor"))
        assert res.status_code == 403
        assert res.json()["userRole"] == "doctor"
        assert res.json()["requiredRoles"] == ["super_admin", "technician"]

    def test_require_role_rejects_undeclared_role_at_definition(self):
        with pytest.raises(ValueError):
            require_role(["super_admin", "nurse"])

    def test_settings_edit_requires_super_admin_role(self, client, headers_for):
        res = client.put("/api/v1/settings/", json={"clinic_name": "North"}, headers=headers_for("doctor"))
        assert res.status_code == 403
        body = res.json()
        assert body["error"] == "Insufficient role"
        assert body["userRole"] == "doctor"
        assert body["requiredRoles"] == ["super_admin"]

    def test_super_admin_updates_settings(self, client, headers_for):
        headers = headers_for("super_admin")
        res = client.put("/api/v1/settings/", json={"clinic_name": "North"}, headers=headers)
        assert res.status_code == 200
        assert client.get("/api/v1/settings/", headers=headers).json() == {"clinic_name": "North"}

    def test_module_access_denied_payload(self, override_get_db, headers_for):
        client = _guarded_client(UserPermissions.module_access, override_get_db)
        res = client.get("/guarded", headers=headers_for("technician"))
        assert res.status_code == 403
        assert res.json()["error"] == "Module access denied"
        assert res.json()["module"] == "users"
        assert res.json()["userRole"] == "technician"
        assert client.get("/guarded", headers=headers_for("super_admin")).status_code == 200

    def test_require_doctor_admits_doctor_and_super_admin(self, override_get_db, headers_for):
        client = _guarded_client(require_doctor, override_get_db)
        assert client.get("/guarded", headers=headers_for("doctor")).status_code == 200
        assert client.get("/guarded", headers=headers_for("super_admin")).status_code == 200
        assert client.get("/guarded", headers=headers_for("technician")).status_code == 403

    def test_guard_returns_resolved_role(self, override_get_db, headers_for):
        client = _guarded_client(PatientPermissions.module_access, override_get_db)
        assert client.get("/guarded", headers=headers_for("doctor")).json() == {"role": "doctor"}

    def test_permissions_introspection(self, client, headers_for):
        res = client.get("/api/v1/auth/permissions", headers=headers_for("technician"))
        assert res.status_code == 200
        body = res.json()
        assert body["role"] == "technician"
        assert body["roleName"] == "Technician"
        assert body["sidebarMenus"] == ["dashboard", "patients"]
        assert body["modules"] == ["patients"]

    def test_introspection_rejects_invalid_role(self, client, headers_for):
        res = client.get("/api/v1/auth/permissions", headers=headers_for("janitor"))
        assert res.status_code == 403
        assert res.json()["error"] == "Invalid role"


# ---------------------------------------------------------------------------
# User management
# ---------------------------------------------------------------------------

class TestUserManagement:
    def test_list_roles(self, client, headers_for):
        res = client.get("/api/v1/roles/", headers=headers_for("super_admin"))
        assert res.status_code == 200
        assert [r["role"] for r in res.json()] == ["super_admin", "doctor", "technician"]

    def test_assign_role(self, client, headers_for, make_user):
        target = make_user("technician")
        res = client.put(
            f"/api/v1/users/{target}/role", json={"role": "doctor"}, headers=headers_for("super_admin")
        )
        assert res.status_code == 200
        assert res.json()["role"] == "doctor"

    def test_assign_unknown_role_is_400(self, client, headers_for, make_user):
        target = make_user("technician")
        res = client.put(
            f"/api/v1/users/{target}/role", json={"role": "owner"}, headers=headers_for(Role.SUPER_ADMIN.value)
        )
        assert res.status_code == 400

    def test_doctor_cannot_assign_roles(self, client, headers_for, make_user):
        target = make_user("technician")
        res = client.put(f"/api/v1/users/{target}/role", json={"role": "doctor"}, headers=headers_for("doctor"))
        assert res.status_code == 403
