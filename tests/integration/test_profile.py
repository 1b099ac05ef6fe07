"""Integration tests for the profile and onboarding endpoints."""

import pytest
from httpx import AsyncClient

from asthma_api.domain.entities.audit_event import AuditEventType
from asthma_api.infrastructure.persistence.repositories import UserRepository

ONBOARDING_BODY = {
    "childFirstName": "Sam",
    "childLastName": "Rivera",
    "childDateOfBirth": "2018-04-12T00:00:00Z",
    "childSex": "FEMALE",
    "zipCode": "94110",
    "medicationRemindersEnabled": True,
    "dailyMedicationDoses": 2,
    "preferredMedicationTime": "8:00 AM",
    "dailyLogRemindersEnabled": False,
}


@pytest.mark.asyncio
async def test_get_profile(client: AsyncClient, registered_user, auth_headers):
    res = await client.get("/api/profile", headers=auth_headers)

    assert res.status_code == 200
    user = res.json()["user"]
    assert user["id"] == registered_user["user"]["id"]
    assert user["email"] == "a@x.com"
    assert user["childFirstName"] is None
    assert user["medicationRemindersEnabled"] is False
    assert user["onboardingCompleted"] is False
    assert "passwordHash" not in res.text


@pytest.mark.asyncio
async def test_profile_requires_token(client: AsyncClient):
    res = await client.get("/api/profile")

    assert res.status_code == 401
    assert res.json()["code"] == "NO_TOKEN"


@pytest.mark.asyncio
async def test_update_profile_partial(client: AsyncClient, auth_headers, audit_sink):
    res = await client.patch(
        "/api/profile",
        headers=auth_headers,
        json={"firstName": "Alex", "zipCode": "12345-6789", "currentOnboardingStep": 2},
    )

    assert res.status_code == 200
    data = res.json()
    assert data["message"] == "Profile updated successfully"
    assert data["user"]["firstName"] == "Alex"
    assert data["user"]["zipCode"] == "12345-6789"
    assert data["user"]["currentOnboardingStep"] == 2
    assert data["user"]["lastName"] is None

    [event] = audit_sink.of_type(AuditEventType.PROFILE_UPDATED)
    assert event.details == {"fields": ["current_onboarding_step", "first_name", "zip_code"]}


@pytest.mark.asyncio
async def test_update_profile_keeps_omitted_fields(client: AsyncClient, auth_headers):
    await client.patch("/api/profile", headers=auth_headers, json={"firstName": "Alex"})

    res = await client.patch(
        "/api/profile", headers=auth_headers, json={"lastName": "Kim", "firstName": None}
    )

    assert res.status_code == 200
    assert res.json()["user"]["firstName"] == "Alex"
    assert res.json()["user"]["lastName"] == "Kim"


@pytest.mark.asyncio
async def test_update_profile_cannot_change_role(client: AsyncClient, auth_headers):
    res = await client.patch("/api/profile", headers=auth_headers, json={"role": "ADMIN"})

    assert res.status_code == 200
    assert res.json()["user"]["role"] == "PATIENT"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, field",
    [
        ({"zipCode": "1234"}, "zipCode"),
        ({"dailyMedicationDoses": 11}, "dailyMedicationDoses"),
        ({"preferredMedicationTime": "25:00"}, "preferredMedicationTime"),
        ({"childSex": "UNKNOWN"}, "childSex"),
        ({"currentOnboardingStep": -1}, "currentOnboardingStep"),
    ],
)
async def test_update_profile_validation(client: AsyncClient, auth_headers, body, field):
    res = await client.patch("/api/profile", headers=auth_headers, json=body)

    assert res.status_code == 400
    data = res.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert [d["field"] for d in data["details"]] == [field]


@pytest.mark.asyncio
async def test_complete_onboarding(client: AsyncClient, auth_headers, audit_sink):
    res = await client.post(
        "/api/profile/onboarding/complete", headers=auth_headers, json=ONBOARDING_BODY
    )

    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "onboardingCompleted": True,
        "message": "Onboarding completed successfully",
    }
    assert len(audit_sink.of_type(AuditEventType.ONBOARDING_COMPLETED)) == 1

    profile = (await client.get("/api/profile", headers=auth_headers)).json()["user"]
    assert profile["childFirstName"] == "Sam"
    assert profile["childSex"] == "FEMALE"
    assert profile["dailyMedicationDoses"] == 2
    assert profile["preferredMedicationTime"] == "8:00 AM"
    assert profile["onboardingCompleted"] is True

    status = await client.get("/api/profile/onboarding/status", headers=auth_headers)
    assert status.json() == {"success": True, "onboardingCompleted": True}


@pytest.mark.asyncio
async def test_complete_onboarding_missing_fields(client: AsyncClient, auth_headers):
    body = {k: v for k, v in ONBOARDING_BODY.items() if k != "zipCode"}

    res = await client.post("/api/profile/onboarding/complete", headers=auth_headers, json=body)

    assert res.status_code == 400
    assert [d["field"] for d in res.json()["details"]] == ["zipCode"]


@pytest.mark.asyncio
async def test_onboarding_status_initially_false(client: AsyncClient, auth_headers):
    res = await client.get("/api/profile/onboarding/status", headers=auth_headers)

    assert res.status_code == 200
    assert res.json()["onboardingCompleted"] is False


@pytest.mark.asyncio
async def test_profile_for_deleted_user(client: AsyncClient, registered_user, auth_headers, db_session):
    await UserRepository(db_session).delete(registered_user["user"]["id"])

    res = await client.get("/api/profile/onboarding/status", headers=auth_headers)

    # The gate rejects the token before the handler looks the user up
    assert res.status_code == 401
    assert res.json()["code"] == "USER_NOT_FOUND"
