import pytest

from priming.core.errors import ApiError, ErrorCode
from priming.models import Child, Evaluator, User
from priming.schemas import RegisterRequest
from priming.services.accounts import create_account

from conftest import PASSWORD, auth, count_rows, registration


async def test_register_evaluator_creates_user_and_profile(client, database):
    payload = registration("evaluator", code="DOC900")

    response = await client.post("/api/register", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["message"]
    user_id = body["user_id"]
    assert await count_rows(database, Evaluator, Evaluator.user_id == user_id, Evaluator.code == "DOC900") == 1


async def test_register_child_creates_profile(client, database):
    response = await client.post("/api/register", json=registration("child", age=7, grade=2))

    assert response.status_code == 201
    user_id = response.json()["user_id"]
    assert await count_rows(database, Child, Child.user_id == user_id, Child.age == 7) == 1


async def test_register_duplicate_email(client, database):
    payload = registration("admin")
    assert (await client.post("/api/register", json=payload)).status_code == 201

    response = await client.post("/api/register", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.EMAIL_EXISTS
    assert await count_rows(database, User, User.email == payload["email"]) == 1


async def test_register_duplicate_code(client, database):
    assert (await client.post("/api/register", json=registration("evaluator", code="DUP1"))).status_code == 201

    response = await client.post("/api/register", json=registration("evaluator", code="DUP1"))

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.CODE_EXISTS
    assert await count_rows(database, User) == 1


async def test_duplicate_code_inside_transaction_rolls_back_user(session, database):
    """The unique constraint decides even when the fast reject is skipped."""
    await create_account(session, RegisterRequest(**registration("evaluator", code="RACE1")))
    users_before = await count_rows(database, User)

    with pytest.raises(ApiError) as exc:
        await create_account(session, RegisterRequest(**registration("evaluator", code="RACE1")))

    assert exc.value.code == ErrorCode.CODE_EXISTS
    assert await count_rows(database, User) == users_before
    assert await count_rows(database, Evaluator) == 1


async def test_register_validation_errors(client):
    response = await client.post("/api/register", json={"email": "x@example.com", "password": PASSWORD})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == ErrorCode.MISSING_DATA
    assert body["details"]


async def test_register_unparseable_body_is_missing_data(client):
    response = await client.post("/api/register", json=registration("child", age="abc"))

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == ErrorCode.MISSING_DATA
    assert any("age" in d for d in body["details"])


async def test_login_returns_token_and_role_data(client, create_user):
    user = await create_user("child")

    response = await client.post("/api/login", json={"email": user.email, "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token"]
    assert body["user"]["id"] == user.id
    assert body["user"]["role"] == "child"
    assert body["user"]["role_data"]["kind"] == "child"
    assert body["user"]["role_data"]["school"] == "Colegio Central"


async def test_login_unknown_user(client):
    response = await client.post("/api/login", json={"email": "ghost@example.com", "password": PASSWORD})

    assert response.status_code == 401
    assert response.json()["code"] == ErrorCode.USER_NOT_FOUND


async def test_login_wrong_password(client, create_user):
    user = await create_user("admin")

    response = await client.post("/api/login", json={"email": user.email, "password": "Wrong123"})

    assert response.status_code == 401
    assert response.json()["code"] == ErrorCode.WRONG_PASSWORD


async def test_login_missing_credentials(client):
    response = await client.post("/api/login", json={"email": "ana@example.com"})

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.MISSING_CREDENTIALS


async def test_verify_token(client, create_user):
    user = await create_user("evaluator")

    response = await client.get("/api/verify-token", headers=auth(user))

    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["user"]["role_data"]["kind"] == "evaluator"


async def test_verify_token_without_header(client):
    response = await client.get("/api/verify-token")

    assert response.status_code == 401
    assert response.json()["code"] == ErrorCode.ACCESS_DENIED


async def test_verify_token_with_bad_token(client):
    response = await client.get("/api/verify-token", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.INVALID_TOKEN


async def test_status(client):
    response = await client.get("/api/status")

    assert response.status_code == 200
    body = response.json()
    assert body["environment"] == "test"
    assert body["cors_origin"] == "*"
