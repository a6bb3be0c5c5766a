from conftest import auth_headers


def _create(client, headers, owner, **overrides):
    payload = {
        "nome": "Notebook",
        "modelo": "Latitude 5420",
        "numero_serie": "NB-0001",
        "patrimonio": "120034",
        "local": "Almoxarifado",
        "usuario_id": owner.id,
    }
    payload.update(overrides)
    return client.post("/api/equipamentos", json=payload, headers=headers)


def test_health_and_baseline_headers(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.headers["x-request-id"] == "req-123"
    assert "x-response-time" in response.headers
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nao-existe")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_equipment_lifecycle_over_http(client, make_user):
    owner = make_user()
    operator = make_user()
    owner_headers = auth_headers(owner)
    operator_headers = auth_headers(operator)

    response = _create(client, owner_headers, owner)
    assert response.status_code == 201
    equipamento = response.json()
    assert equipamento["status"] == "NO_DEPOSITO"
    assert equipamento["usuario"] == {"id": owner.id, "nome": owner.nome, "usuario_rede": owner.usuario_rede}

    response = client.post(
        "/api/movimentacoes",
        json={"equipamento_id": equipamento["id"], "tipo": "SAIDA", "observacao": "Home office"},
        headers=operator_headers,
    )
    assert response.status_code == 201
    movimento = response.json()
    assert movimento["usuario_id"] == operator.id
    assert movimento["equipamento"]["status"] == "FORA_DEPOSITO"

    response = client.post(
        "/api/movimentacoes",
        json={"equipamento_id": equipamento["id"], "tipo": "SAIDA"},
        headers=operator_headers,
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": "Equipamento deve estar NO_DEPOSITO para realizar SAIDA",
        "code": "invalid_transition",
    }

    detail = client.get(f"/api/equipamentos/{equipamento['id']}", headers=owner_headers).json()
    assert detail["status"] == "FORA_DEPOSITO"
    assert detail["ultima_observacao"] == "Home office"
    assert [m["tipo"] for m in detail["movimentacoes"]] == ["SAIDA"]

    response = client.put(
        f"/api/equipamentos/{equipamento['id']}",
        json={"local": "Sala 4"},
        headers=operator_headers,
    )
    assert response.status_code == 200
    assert response.json()["usuario_id"] == operator.id

    historico = client.get(f"/api/equipamentos/{equipamento['id']}/historico", headers=owner_headers).json()
    assert [row["acao"] for row in historico["data"]][-1] == "CADASTRO"
    assert {row["campo_alterado"] for row in historico["data"] if row["acao"] == "EDICAO"} == {"local", "usuario_id"}

    response = client.delete(f"/api/equipamentos/{equipamento['id']}", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "DESCARTADO"

    response = client.post(
        "/api/movimentacoes",
        json={"equipamento_id": equipamento["id"], "tipo": "ENTRADA"},
        headers=operator_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "discarded_equipment"

    listing = client.get("/api/equipamentos", headers=owner_headers).json()
    assert listing["data"] == []
    assert listing["meta"]["total"] == 0


def test_duplicate_serial_over_http(client, user):
    headers = auth_headers(user)
    assert _create(client, headers, user).status_code == 201

    response = _create(client, headers, user)

    assert response.status_code == 400
    assert response.json() == {"error": "Número de série já cadastrado", "code": "duplicate_serial"}


def test_equipment_validation_messages(client, user):
    response = _create(client, auth_headers(user), user, patrimonio="ABC-12", modelo="X")

    assert response.status_code == 400
    details = {d["field"]: d["message"] for d in response.json()["details"]}
    assert details["patrimonio"] == "Patrimônio deve conter apenas números"
    assert "modelo" in details


def test_not_found_is_uniform(client, user):
    headers = auth_headers(user)

    for path in ("/api/equipamentos/999", "/api/movimentacoes/999", "/api/usuarios/999"):
        response = client.get(path, headers=headers)
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    response = client.put("/api/equipamentos/999", json={"nome": "Qualquer"}, headers=headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Equipamento não encontrado"


def test_scoped_movement_listings(client, make_user, make_equipamento):
    ana = make_user()
    bruno = make_user()
    first = make_equipamento(ana)
    second = make_equipamento(ana)
    headers_ana = auth_headers(ana)
    headers_bruno = auth_headers(bruno)

    client.post("/api/movimentacoes", json={"equipamento_id": first.id, "tipo": "SAIDA"}, headers=headers_ana)
    client.post("/api/movimentacoes", json={"equipamento_id": second.id, "tipo": "SAIDA"}, headers=headers_bruno)
    client.post("/api/movimentacoes", json={"equipamento_id": first.id, "tipo": "ENTRADA"}, headers=headers_bruno)

    by_equipment = client.get(f"/api/movimentacoes/equipamento/{first.id}", headers=headers_ana).json()
    assert [m["tipo"] for m in by_equipment["data"]] == ["ENTRADA", "SAIDA"]

    by_user = client.get(f"/api/movimentacoes/usuario/{bruno.id}", headers=headers_ana).json()
    assert by_user["meta"]["total"] == 2
    assert all(m["usuario"]["id"] == bruno.id for m in by_user["data"])

    filtered = client.get("/api/movimentacoes", params={"tipo": "SAIDA", "limit": 1}, headers=headers_ana).json()
    assert filtered["meta"]["total"] == 2
    assert filtered["meta"]["totalPages"] == 2
    assert len(filtered["data"]) == 1


def test_movement_body_validation(client, user):
    response = client.post("/api/movimentacoes", json={"tipo": "DOACAO"}, headers=auth_headers(user))

    assert response.status_code == 400
    fields = {d["field"] for d in response.json()["details"]}
    assert fields == {"equipamento_id", "tipo"}
