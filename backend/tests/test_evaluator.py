from priming.core.errors import ErrorCode
from priming.models import Child, Survey, User

from conftest import PASSWORD, auth, count_rows, registration


async def test_assign_child_creates_user_child_and_survey(client, database, create_user, assign_child):
    evaluator = await create_user("evaluator")

    survey_id, child_id, payload = await assign_child(evaluator, age=5, grade=-1, shift="afternoon")

    assert await count_rows(database, User, User.email == payload["email"]) == 1
    assert await count_rows(database, Child, Child.id == child_id, Child.age == 5) == 1
    assert await count_rows(
        database, Survey, Survey.id == survey_id, Survey.attempts == 0, Survey.session_number == 1
    ) == 1

    children = await client.get("/api/evaluador/ninos", headers=auth(evaluator))
    row = children.json()[0]
    assert row["child_name"] == payload["name"]
    assert row["shift"] == "afternoon"
    assert row["notes"] == ""


async def test_assigned_child_can_log_in(client, create_user, assign_child):
    evaluator = await create_user("evaluator")
    _, _, payload = await assign_child(evaluator)

    response = await client.post("/api/login", json={"email": payload["email"], "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "child"


async def test_failed_assignment_leaves_no_rows(client, database, create_user):
    admin = await create_user("admin")
    payload = registration("child")
    payload.pop("role")
    users_before = await count_rows(database, User)

    response = await client.post("/api/evaluador/asignar-nino", json=payload, headers=auth(admin))

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.NOT_EVALUATOR
    assert await count_rows(database, User) == users_before
    assert await count_rows(database, User, User.email == payload["email"]) == 0
    assert await count_rows(database, Child) == 0
    assert await count_rows(database, Survey) == 0


async def test_assign_child_duplicate_email(client, create_user):
    evaluator = await create_user("evaluator")
    taken = await create_user("admin")
    payload = registration("child", email=taken.email)
    payload.pop("role")

    response = await client.post("/api/evaluador/asignar-nino", json=payload, headers=auth(evaluator))

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.EMAIL_EXISTS


async def test_assign_child_validation(client, create_user):
    evaluator = await create_user("evaluator")

    response = await client.post(
        "/api/evaluador/asignar-nino",
        json={"name": "Leo", "email": "leo@example.com", "password": PASSWORD, "age": 8},
        headers=auth(evaluator),
    )

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.MISSING_DATA


async def test_child_results_for_assigned_child(client, create_user, assign_child):
    evaluator = await create_user("evaluator")
    survey_id, child_id, payload = await assign_child(evaluator)

    response = await client.get(f"/api/evaluador/resultados/{child_id}", headers=auth(evaluator))

    assert response.status_code == 200
    body = response.json()
    assert body["child"]["id"] == child_id
    assert body["child"]["email"] == payload["email"]
    assert [s["id"] for s in body["surveys"]] == [survey_id]
    assert body["progress"] == []


async def test_child_results_for_unassigned_child(client, create_user, assign_child):
    owner = await create_user("evaluator")
    other = await create_user("evaluator")
    _, child_id, _ = await assign_child(owner)

    response = await client.get(f"/api/evaluador/resultados/{child_id}", headers=auth(other))

    assert response.status_code == 403
    assert response.json()["code"] == ErrorCode.ACCESS_DENIED


async def test_edit_assigned_child(client, database, create_user, assign_child):
    evaluator = await create_user("evaluator")
    _, child_id, _ = await assign_child(evaluator)

    response = await client.put(
        f"/api/evaluador/ninos/{child_id}",
        json={"name": "Nuevo Nombre", "age": 7, "shift": "continuous"},
        headers=auth(evaluator),
    )

    assert response.status_code == 200
    results = await client.get(f"/api/evaluador/resultados/{child_id}", headers=auth(evaluator))
    child = results.json()["child"]
    assert child["name"] == "Nuevo Nombre"
    assert child["age"] == 7
    assert child["shift"] == "continuous"
    assert child["school"] == "Colegio Central"


async def test_edit_unassigned_child(client, create_user, assign_child):
    owner = await create_user("evaluator")
    other = await create_user("evaluator")
    _, child_id, _ = await assign_child(owner)

    response = await client.put(
        f"/api/evaluador/ninos/{child_id}", json={"age": 6}, headers=auth(other)
    )

    assert response.status_code == 403


async def test_reset_child_password(client, create_user, assign_child):
    evaluator = await create_user("evaluator")
    _, child_id, payload = await assign_child(evaluator)

    response = await client.put(
        f"/api/evaluador/ninos/{child_id}/password",
        json={"password": "Cambio99"},
        headers=auth(evaluator),
    )

    assert response.status_code == 200
    login = await client.post("/api/login", json={"email": payload["email"], "password": "Cambio99"})
    assert login.status_code == 200


async def test_reset_child_password_rejects_weak_password(client, create_user, assign_child):
    evaluator = await create_user("evaluator")
    _, child_id, _ = await assign_child(evaluator)

    response = await client.put(
        f"/api/evaluador/ninos/{child_id}/password",
        json={"password": "weak"},
        headers=auth(evaluator),
    )

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.INVALID_PASSWORD


async def test_statistics(client, create_user, assign_child):
    evaluator = await create_user("evaluator")
    await assign_child(evaluator, age=5, school="Colegio A")
    await assign_child(evaluator, age=5, school="Colegio B")
    _, child_id, _ = await assign_child(evaluator, age=7, school="Colegio A")
    # A second survey with the same child
    await client.post("/api/encuestas", json={"child_id": child_id}, headers=auth(evaluator))

    response = await client.get("/api/evaluador/estadisticas", headers=auth(evaluator))

    assert response.status_code == 200
    body = response.json()
    assert body["total_children"] == 3
    assert body["total_surveys"] == 4
    assert body["by_age"] == [{"value": 5, "count": 2}, {"value": 7, "count": 2}]
    assert body["by_school"][0] == {"value": "Colegio A", "count": 3}
