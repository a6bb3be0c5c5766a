import pytest
from sqlalchemy import select

from estoque.core.equipment_status import (
    STATUS_DESCARTADO,
    STATUS_FORA_DEPOSITO,
    STATUS_NO_DEPOSITO,
)
from estoque.core.errors import AppError, ErrorKind
from estoque.crud.equipamentos import (
    create_equipamento,
    discard_equipamento,
    get_equipamento,
    list_active_equipamentos,
    update_equipamento,
)
from estoque.crud.historico import list_history
from estoque.crud.movimentacoes import record_movement
from estoque.models.historico import HistoricoEquipamento


def _history(db_session, equipamento_id):
    stmt = (
        select(HistoricoEquipamento)
        .where(HistoricoEquipamento.equipamento_id == equipamento_id)
        .order_by(HistoricoEquipamento.id)
    )
    return db_session.execute(stmt).unique().scalars().all()


def test_create_starts_in_stock_and_writes_cadastro(db_session, user):
    equipamento = create_equipamento(
        db_session,
        {
            "nome": "  Notebook ",
            "modelo": "ThinkPad T14",
            "numero_serie": "ABC123",
            "patrimonio": "00042",
            "local": "Sala 3",
            "usuario_id": user.id,
            "status": STATUS_FORA_DEPOSITO,
        },
        acting_user_id=user.id,
    )

    assert equipamento.status == STATUS_NO_DEPOSITO
    assert equipamento.nome == "Notebook"
    assert equipamento.usuario.usuario_rede == "joao.silva"

    history = _history(db_session, equipamento.id)
    assert [h.acao for h in history] == ["CADASTRO"]
    assert history[0].usuario_id == user.id


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("nome", "TV", "Nome deve ter pelo menos 3 caracteres"),
        ("modelo", "X", "Modelo deve ter pelo menos 2 caracteres"),
        ("numero_serie", "12", "Número de série deve ter pelo menos 3 caracteres"),
        ("usuario_id", None, "ID do usuário é obrigatório"),
    ],
)
def test_create_validates_required_fields(db_session, user, field, value, message):
    payload = {"nome": "Monitor", "modelo": "P2422H", "numero_serie": "MON-1", "usuario_id": user.id}
    payload[field] = value

    with pytest.raises(AppError) as exc:
        create_equipamento(db_session, payload)

    assert exc.value.kind is ErrorKind.VALIDATION
    assert exc.value.message == message


def test_create_requires_existing_owner(db_session):
    with pytest.raises(AppError) as exc:
        create_equipamento(
            db_session,
            {"nome": "Monitor", "modelo": "P2422H", "numero_serie": "MON-1", "usuario_id": 999},
        )
    assert exc.value.kind is ErrorKind.NOT_FOUND
    assert exc.value.message == "Usuário não encontrado"


def test_duplicate_serial_is_rejected_until_first_is_discarded(db_session, user, make_equipamento):
    first = make_equipamento(user, numero_serie="SN-DUP")

    with pytest.raises(AppError) as exc:
        make_equipamento(user, numero_serie="SN-DUP")
    assert exc.value.kind is ErrorKind.DUPLICATE_SERIAL
    assert exc.value.message == "Número de série já cadastrado"

    discard_equipamento(db_session, first.id, user.id)
    replacement = make_equipamento(user, numero_serie="SN-DUP")

    assert replacement.id != first.id
    assert replacement.status == STATUS_NO_DEPOSITO


def test_update_records_one_history_row_per_changed_field(db_session, make_user, make_equipamento):
    owner = make_user()
    editor = make_user()
    equipamento = make_equipamento(owner, local="Almoxarifado")

    updated = update_equipamento(
        db_session,
        equipamento.id,
        {"nome": "Notebook Gamer", "modelo": "Dell Latitude 5420", "local": "Sala 12"},
        editor.id,
    )

    assert updated.nome == "Notebook Gamer"
    assert updated.usuario_id == editor.id

    edits = [h for h in _history(db_session, equipamento.id) if h.acao == "EDICAO"]
    changes = {h.campo_alterado: (h.valor_anterior, h.valor_novo) for h in edits}
    assert changes == {
        "nome": ("Notebook", "Notebook Gamer"),
        "local": ("Almoxarifado", "Sala 12"),
        "usuario_id": (str(owner.id), str(editor.id)),
    }
    assert all(h.usuario_id == editor.id for h in edits)


def test_update_can_clear_optional_fields(db_session, user, make_equipamento):
    equipamento = make_equipamento(user, patrimonio="123")

    updated = update_equipamento(db_session, equipamento.id, {"patrimonio": None}, user.id)

    assert updated.patrimonio is None
    edits = [h for h in _history(db_session, equipamento.id) if h.acao == "EDICAO"]
    assert [(h.campo_alterado, h.valor_anterior, h.valor_novo) for h in edits] == [("patrimonio", "123", None)]


def test_update_does_not_change_status(db_session, user, make_equipamento):
    equipamento = make_equipamento(user)

    update_equipamento(db_session, equipamento.id, {"status": STATUS_DESCARTADO}, user.id)

    db_session.refresh(equipamento)
    assert equipamento.status == STATUS_NO_DEPOSITO


def test_update_serial_conflict_has_its_own_message(db_session, user, make_equipamento):
    make_equipamento(user, numero_serie="SN-A")
    other = make_equipamento(user, numero_serie="SN-B")

    with pytest.raises(AppError) as exc:
        update_equipamento(db_session, other.id, {"numero_serie": "SN-A"}, user.id)

    assert exc.value.kind is ErrorKind.DUPLICATE_SERIAL
    assert exc.value.message == "Número de série já cadastrado em outro equipamento"
    db_session.refresh(other)
    assert other.numero_serie == "SN-B"
    assert [h.acao for h in _history(db_session, other.id)] == ["CADASTRO"]


def test_update_missing_equipment_writes_no_history(db_session, user):
    with pytest.raises(AppError) as exc:
        update_equipamento(db_session, 999, {"nome": "Qualquer"}, user.id)

    assert exc.value.kind is ErrorKind.NOT_FOUND
    assert exc.value.message == "Equipamento não encontrado"
    assert db_session.execute(select(HistoricoEquipamento)).first() is None


def test_discard_is_terminal(db_session, user, make_equipamento):
    equipamento = make_equipamento(user)
    record_movement(db_session, equipamento_id=equipamento.id, tipo="SAIDA", usuario_id=user.id)

    discarded = discard_equipamento(db_session, equipamento.id, user.id)
    assert discarded.status == STATUS_DESCARTADO

    for tipo in ("ENTRADA", "SAIDA"):
        with pytest.raises(AppError) as exc:
            record_movement(db_session, equipamento_id=equipamento.id, tipo=tipo, usuario_id=user.id)
        assert exc.value.kind is ErrorKind.DISCARDED_EQUIPMENT
        assert exc.value.message == "Não é possível movimentar equipamento descartado"

    descarte = [h for h in _history(db_session, equipamento.id) if h.acao == "DESCARTE"]
    assert len(descarte) == 1
    assert (descarte[0].campo_alterado, descarte[0].valor_anterior, descarte[0].valor_novo) == (
        "status",
        STATUS_FORA_DEPOSITO,
        STATUS_DESCARTADO,
    )


def test_discard_missing_equipment(db_session, user):
    with pytest.raises(AppError) as exc:
        discard_equipamento(db_session, 404, user.id)
    assert exc.value.kind is ErrorKind.NOT_FOUND


def test_listing_excludes_discarded_by_default(db_session, user, make_equipamento):
    keep_a = make_equipamento(user)
    keep_b = make_equipamento(user)
    gone = make_equipamento(user)
    discard_equipamento(db_session, gone.id, user.id)

    items, meta = list_active_equipamentos(db_session)
    assert {item.id for item in items} == {keep_a.id, keep_b.id}
    assert meta["total"] == 2

    # Asking for the terminal status does not bring retired items back.
    items, _ = list_active_equipamentos(db_session, {"status": STATUS_DESCARTADO})
    assert gone.id not in {item.id for item in items}


def test_listing_filters(db_session, make_user, make_equipamento):
    ana = make_user()
    bruno = make_user()
    notebook = make_equipamento(ana, nome="Notebook", modelo="Latitude", local="Sala 1")
    monitor = make_equipamento(bruno, nome="Monitor", modelo="P2422H", patrimonio="778899")
    record_movement(db_session, equipamento_id=monitor.id, tipo="SAIDA", usuario_id=bruno.id)

    def ids(filters):
        items, _ = list_active_equipamentos(db_session, filters)
        return {item.id for item in items}

    assert ids({"status": STATUS_FORA_DEPOSITO}) == {monitor.id}
    assert ids({"status": STATUS_NO_DEPOSITO}) == {notebook.id}
    assert ids({"usuario_id": ana.id}) == {notebook.id}
    assert ids({"nome": "note"}) == {notebook.id}
    assert ids({"modelo": "p24"}) == {monitor.id}
    assert ids({"patrimonio": "7788"}) == {monitor.id}
    assert ids({"local": "SALA"}) == {notebook.id}
    assert ids({"search": "latitude"}) == {notebook.id}
    assert ids({"search": "778"}) == {monitor.id}
    assert ids({"created_at": notebook.created_at.date()}) == {notebook.id, monitor.id}
    assert ids({"created_at": "1999-01-01"}) == set()


def test_text_filters_treat_wildcards_literally(db_session, user, make_equipamento):
    make_equipamento(user, nome="Notebook", local="Sala 1")
    cem = make_equipamento(user, nome="Nobreak 100%", local="Sala_2")

    def ids(filters):
        items, _ = list_active_equipamentos(db_session, filters)
        return {item.id for item in items}

    assert ids({"search": "%"}) == {cem.id}
    assert ids({"local": "Sala_"}) == {cem.id}
    assert ids({"nome": "_o"}) == set()


def test_listing_includes_last_movement_note_and_owner(db_session, user, make_equipamento):
    equipamento = make_equipamento(user)
    record_movement(
        db_session,
        equipamento_id=equipamento.id,
        tipo="SAIDA",
        usuario_id=user.id,
        observacao="  Emprestado para o RH  ",
    )

    items, _ = list_active_equipamentos(db_session)

    assert items[0].ultima_observacao == "Emprestado para o RH"
    assert items[0].usuario.nome == "João Silva"


def test_detail_returns_five_most_recent_movements(db_session, user, make_equipamento):
    equipamento = make_equipamento(user)
    for index in range(6):
        tipo = "SAIDA" if index % 2 == 0 else "ENTRADA"
        record_movement(
            db_session,
            equipamento_id=equipamento.id,
            tipo=tipo,
            usuario_id=user.id,
            observacao=f"mov {index}",
        )

    detalhe = get_equipamento(db_session, equipamento.id)

    assert len(detalhe.movimentacoes_recentes) == 5
    assert detalhe.movimentacoes_recentes[0].observacao == "mov 5"
    assert detalhe.ultima_observacao == "mov 5"


def test_history_listing_is_newest_first(db_session, user, make_equipamento):
    equipamento = make_equipamento(user)
    update_equipamento(db_session, equipamento.id, {"local": "Sala 9"}, user.id)
    discard_equipamento(db_session, equipamento.id, user.id)

    rows, meta = list_history(db_session, equipamento.id)

    assert [row.acao for row in rows] == ["DESCARTE", "EDICAO", "CADASTRO"]
    assert meta["total"] == 3
