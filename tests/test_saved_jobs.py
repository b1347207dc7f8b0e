import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import crud
from auth import AuthService
from tests.test_auth import create_test_user
from tests.test_jobs_api import create_test_job


@pytest.fixture
def user(db_session: Session):
    return create_test_user(db_session, email="saver@example.com")


@pytest.fixture
def auth_headers(user, auth_service: AuthService):
    return {"Authorization": f"Bearer {auth_service.issue_access(user.id)}"}


def test_save_job_twice_keeps_one_entry(test_client: TestClient, db_session: Session, auth_headers):
    create_test_job(db_session, job_id="keep-me")

    first = test_client.post("/api/users/save-job", json={"jobID": "keep-me"}, headers=auth_headers)
    second = test_client.post("/api/users/save-job", json={"jobID": "keep-me"}, headers=auth_headers)

    assert first.status_code == status.HTTP_200_OK
    assert first.json() == {"message": "Job saved successfully", "savedJobs": ["keep-me"]}
    assert second.json()["savedJobs"] == ["keep-me"]

    listed = test_client.get("/api/users/saved-jobs", headers=auth_headers)
    assert listed.status_code == status.HTTP_200_OK
    saved = listed.json()["savedJobs"]
    assert [job["job_id"] for job in saved] == ["keep-me"]
    assert saved[0]["job_title"] == "Software Engineer"


def test_saved_jobs_keep_insertion_order(test_client: TestClient, db_session: Session, auth_headers):
    for job_id in ("b", "a", "c"):
        create_test_job(db_session, job_id=job_id)
        test_client.post("/api/users/save-job", json={"jobID": job_id}, headers=auth_headers)

    listed = test_client.get("/api/users/saved-jobs", headers=auth_headers).json()["savedJobs"]

    assert [job["job_id"] for job in listed] == ["b", "a", "c"]


def test_remove_saved_job(test_client: TestClient, db_session: Session, user, auth_headers):
    create_test_job(db_session, job_id="one")
    create_test_job(db_session, job_id="two")
    crud.add_saved_job(db_session, user.id, "one")
    crud.add_saved_job(db_session, user.id, "two")

    response = test_client.delete("/api/users/saved-jobs/one", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Job removed successfully", "savedJobs": ["two"]}

    # removing again is a no-op
    again = test_client.delete("/api/users/saved-jobs/one", headers=auth_headers)
    assert again.json()["savedJobs"] == ["two"]


def test_saved_jobs_show_up_on_login(test_client: TestClient, db_session: Session, user):
    create_test_job(db_session, job_id="fav")
    crud.add_saved_job(db_session, user.id, "fav")

    response = test_client.post(
        "/api/auth/login", json={"email": "saver@example.com", "password": "Correct-Horse-9"}
    )

    assert response.json()["user"]["savedJobs"] == ["fav"]


def test_save_job_requires_job_id(test_client: TestClient, auth_headers):
    response = test_client.post("/api/users/save-job", json={}, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Please provide jobID"}


def test_save_unknown_job(test_client: TestClient, auth_headers):
    response = test_client.post("/api/users/save-job", json={"jobID": "ghost"}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_missing_bearer_token(test_client: TestClient):
    response = test_client.get("/api/users/saved-jobs")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Access token missing"}


@pytest.mark.parametrize("header", ["Bearer not-a-token", "Bearer", "Token abc"])
def test_invalid_bearer_token(test_client: TestClient, header):
    response = test_client.get("/api/users/saved-jobs", headers={"Authorization": header})
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"error": "Invalid access token"}


def test_refresh_token_is_not_an_access_token(test_client: TestClient, user, auth_service: AuthService):
    headers = {"Authorization": f"Bearer {auth_service.issue_refresh(user.id)}"}
    response = test_client.get("/api/users/saved-jobs", headers=headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_stale_user_reference(test_client: TestClient, auth_service: AuthService):
    headers = {"Authorization": f"Bearer {auth_service.issue_access(31337)}"}

    assert test_client.get("/api/users/saved-jobs", headers=headers).status_code == status.HTTP_404_NOT_FOUND
    assert (
        test_client.post("/api/users/save-job", json={"jobID": "x"}, headers=headers).status_code
        == status.HTTP_401_UNAUTHORIZED
    )
    assert (
        test_client.delete("/api/users/saved-jobs/x", headers=headers).status_code
        == status.HTTP_401_UNAUTHORIZED
    )
