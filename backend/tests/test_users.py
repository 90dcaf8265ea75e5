from priming.core.errors import ErrorCode
from priming.models import Child, Evaluator, GameProgress, Survey, User

from conftest import PASSWORD, auth, count_rows


async def test_get_basic_user(client, create_user):
    user = await create_user("admin")

    response = await client.get("/api/user", headers=auth(user))

    assert response.status_code == 200
    assert response.json() == {"id": user.id, "name": user.name, "email": user.email, "role": "admin"}


async def test_get_profile_includes_role_data(client, create_user):
    evaluator = await create_user("evaluator", code="PRF001")

    response = await client.get("/api/perfil", headers=auth(evaluator))

    assert response.status_code == 200
    role_data = response.json()["role_data"]
    assert role_data["kind"] == "evaluator"
    assert role_data["code"] == "PRF001"
    assert role_data["evaluator_type"] == "Teacher"


async def test_admin_role_data(client, create_user):
    admin = await create_user("admin")

    response = await client.get("/api/perfil", headers=auth(admin))

    assert response.json()["role_data"] == {"kind": "admin"}


async def test_update_profile_requires_name_and_email(client, create_user):
    user = await create_user("child")

    response = await client.put("/api/perfil", json={"name": "Only Name"}, headers=auth(user))

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.MISSING_DATA


async def test_update_child_profile(client, create_user):
    user = await create_user("child")

    response = await client.put(
        "/api/perfil",
        json={"name": "Renamed", "email": user.email, "grade": 2, "school": "Nuevo Colegio"},
        headers=auth(user),
    )

    assert response.status_code == 200
    body = response.json()["user"]
    assert body["name"] == "Renamed"
    assert body["role_data"]["grade"] == 2
    assert body["role_data"]["school"] == "Nuevo Colegio"
    assert body["role_data"]["age"] == 6


async def test_update_profile_email_taken(client, create_user):
    user = await create_user("child")
    other = await create_user("admin")

    response = await client.put(
        "/api/perfil", json={"name": user.name, "email": other.email}, headers=auth(user)
    )

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.EMAIL_EXISTS


async def test_update_profile_code_taken(client, database, create_user):
    evaluator = await create_user("evaluator", code="OWN001")
    await create_user("evaluator", code="TAKEN1")

    response = await client.put(
        "/api/perfil",
        json={"name": "Changed", "email": evaluator.email, "code": "TAKEN1"},
        headers=auth(evaluator),
    )

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.CODE_EXISTS
    # Nothing from the failed update is kept
    assert await count_rows(database, User, User.id == evaluator.id, User.name == evaluator.name) == 1
    assert await count_rows(database, Evaluator, Evaluator.code == "OWN001") == 1


async def test_evaluator_may_keep_own_code(client, create_user):
    evaluator = await create_user("evaluator", code="SAME01")

    response = await client.put(
        "/api/perfil",
        json={"name": evaluator.name, "email": evaluator.email, "code": "SAME01", "evaluator_type": "Graduate"},
        headers=auth(evaluator),
    )

    assert response.status_code == 200
    assert response.json()["user"]["role_data"]["evaluator_type"] == "Graduate"


async def test_change_password(client, create_user):
    user = await create_user("admin")

    response = await client.put("/api/cambiar-password", json={"password": "Nueva123"}, headers=auth(user))

    assert response.status_code == 200
    old = await client.post("/api/login", json={"email": user.email, "password": PASSWORD})
    new = await client.post("/api/login", json={"email": user.email, "password": "Nueva123"})
    assert old.status_code == 401
    assert new.status_code == 200


async def test_change_password_rejects_weak_password(client, create_user):
    user = await create_user("admin")

    response = await client.put("/api/cambiar-password", json={"password": "abc"}, headers=auth(user))

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.INVALID_PASSWORD


async def test_admin_lists_users(client, create_user):
    admin = await create_user("admin")
    await create_user("evaluator")
    await create_user("child")

    response = await client.get("/api/users", headers=auth(admin))

    assert response.status_code == 200
    assert [u["role_data"]["kind"] for u in response.json()] == ["admin", "evaluator", "child"]


async def test_admin_updates_user(client, create_user):
    admin = await create_user("admin")
    evaluator = await create_user("evaluator")

    response = await client.put(
        f"/api/users/{evaluator.id}",
        json={"document_type": "TI", "evaluator_type": "Student"},
        headers=auth(admin),
    )

    assert response.status_code == 200
    body = response.json()["user"]
    assert body["name"] == evaluator.name
    assert body["role_data"]["document_type"] == "TI"
    assert body["role_data"]["evaluator_type"] == "Student"


async def test_admin_update_missing_user(client, create_user):
    admin = await create_user("admin")

    response = await client.put("/api/users/999", json={"name": "x"}, headers=auth(admin))

    assert response.status_code == 404
    assert response.json()["code"] == ErrorCode.USER_NOT_FOUND


async def test_delete_child_cascades(client, database, create_user, assign_child, games):
    admin = await create_user("admin")
    evaluator = await create_user("evaluator")
    survey_id, child_id, payload = await assign_child(evaluator)
    login = await client.post("/api/login", json={"email": payload["email"], "password": payload["password"]})
    child_user_id = login.json()["user"]["id"]
    await client.post(
        f"/api/nino/juego/{games[0].id}/nivel/{games[0].levels[0].id}/progreso",
        json={"score": 1, "time": 1, "hits": 1, "misses": 0, "completed": False},
        headers={"Authorization": login.json()["token"]},
    )
    await client.post(f"/api/encuestas/{survey_id}/resultados", json={"session_notes": "n"}, headers=auth(evaluator))

    response = await client.delete(f"/api/users/{child_user_id}", headers=auth(admin))

    assert response.status_code == 200
    assert await count_rows(database, User, User.id == child_user_id) == 0
    assert await count_rows(database, Child, Child.id == child_id) == 0
    assert await count_rows(database, Survey) == 0
    assert await count_rows(database, GameProgress) == 0
    # The evaluator is untouched
    assert await count_rows(database, Evaluator, Evaluator.user_id == evaluator.id) == 1


async def test_deleted_user_token_no_longer_verifies(client, create_user):
    admin = await create_user("admin")
    victim = await create_user("evaluator")
    headers = auth(victim)

    await client.delete(f"/api/users/{victim.id}", headers=auth(admin))
    response = await client.get("/api/verify-token", headers=headers)

    assert response.status_code == 404
    assert response.json()["code"] == ErrorCode.USER_NOT_FOUND
