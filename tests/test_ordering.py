"""Tests de l'ordre des cartes et colonnes (ordering_service)"""

import pytest

from conftest import column_orders, headers_for, principal_for
from taskboard.core.exceptions import ConflictError, DeniedError, NotFoundError, ValidationFailure
from taskboard.models.column import BoardColumn
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.services import lifecycle_service
from taskboard.services.ordering_service import (
    add_column,
    bump_column_version,
    delete_column,
    insert_task,
    move_task,
)


def assert_dense(db, column_id):
    orders = [order for _, order in column_orders(db, column_id)]
    assert orders == list(range(len(orders)))


# ========== INSERT ==========

def test_insert_into_empty_column_starts_at_zero(db, board):
    alice = principal_for(board["alice"])
    task = insert_task(db, alice, board["project"].id, board["todo"].id, "First")
    assert task.order == 0
    assert task.column_id == board["todo"].id


def test_inserts_append_at_the_end(db, board):
    bob = principal_for(board["bob"])
    c = insert_task(db, bob, board["project"].id, board["doing"].id, "C")
    assert c.order == 2
    assert column_orders(db, board["doing"].id)[-1] == (c.id, 2)
    assert_dense(db, board["doing"].id)


def test_insert_defaults(db, board):
    task = insert_task(db, principal_for(board["alice"]), board["project"].id, board["todo"].id, "  Title  ")
    assert task.title == "Title"
    assert task.description == "Title"
    assert task.status.value == "NotStarted"
    assert task.end_date > task.start_date


def test_insert_requires_title(db, board):
    with pytest.raises(ValidationFailure):
        insert_task(db, principal_for(board["alice"]), board["project"].id, board["todo"].id, "   ")


def test_insert_into_column_of_other_project(db, board, make_user):
    owner = make_user()
    other = Project(title="Other", organizer_id=owner.id)
    db.add(other)
    db.commit()
    foreign = BoardColumn(project_id=other.id, title="Elsewhere", order=0)
    db.add(foreign)
    db.commit()

    with pytest.raises(NotFoundError):
        insert_task(db, principal_for(board["alice"]), board["project"].id, foreign.id, "Nope")


def test_insert_denied_for_outsider(db, board):
    with pytest.raises(DeniedError):
        insert_task(db, principal_for(board["carol"]), board["project"].id, board["todo"].id, "Nope")


def test_insert_after_archive_keeps_relative_order(db, board):
    alice = principal_for(board["alice"])
    lifecycle_service.archive_task(db, alice, board["b"].id)
    c = insert_task(db, alice, board["project"].id, board["doing"].id, "C")
    # max actif = A (0) -> C = 1
    assert c.order == 1
    assert column_orders(db, board["doing"].id) == [(board["a"].id, 0), (c.id, 1)]


# ========== MOVE ==========

def test_move_within_same_column(db, board):
    """Doing: A=0, B=1 ; moveTask(A, Doing, 1) -> B=0, A=1"""
    move_task(db, principal_for(board["alice"]), board["a"].id, board["doing"].id, 1)
    assert column_orders(db, board["doing"].id) == [(board["b"].id, 0), (board["a"].id, 1)]


def test_move_to_same_place_is_a_no_op(db, board):
    move_task(db, principal_for(board["alice"]), board["a"].id, board["doing"].id, 0)
    assert column_orders(db, board["doing"].id) == [(board["a"].id, 0), (board["b"].id, 1)]


def test_move_across_columns(db, board):
    alice = principal_for(board["alice"])
    moved = move_task(db, alice, board["b"].id, board["todo"].id, 0)
    assert moved.column_id == board["todo"].id
    assert column_orders(db, board["todo"].id) == [(board["b"].id, 0)]
    # la colonne source n'est pas renumérotée
    assert column_orders(db, board["doing"].id) == [(board["a"].id, 0)]


def test_moved_task_lands_at_requested_index(db, board):
    alice = principal_for(board["alice"])
    project_id = board["project"].id
    todo_id = board["todo"].id
    ids = [insert_task(db, alice, project_id, todo_id, f"T{i}").id for i in range(4)]

    move_task(db, alice, board["a"].id, todo_id, 2)
    orders = column_orders(db, todo_id)
    assert [task_id for task_id, _ in orders] == ids[:2] + [board["a"].id] + ids[2:]
    assert_dense(db, todo_id)


@pytest.mark.parametrize("index,expected_position", [(-5, 0), (99, 2)])
def test_move_index_is_clamped(db, board, index, expected_position):
    alice = principal_for(board["alice"])
    c = insert_task(db, alice, board["project"].id, board["todo"].id, "C")
    d = insert_task(db, alice, board["project"].id, board["todo"].id, "D")

    move_task(db, alice, board["a"].id, board["todo"].id, index)
    ids = [task_id for task_id, _ in column_orders(db, board["todo"].id)]
    assert ids.index(board["a"].id) == expected_position
    assert set(ids) == {c.id, d.id, board["a"].id}
    assert_dense(db, board["todo"].id)


def test_move_renumbers_sparse_column(db, board):
    """Une colonne avec des trous (après archivage) redevient dense au premier move"""
    alice = principal_for(board["alice"])
    project_id = board["project"].id
    doing_id = board["doing"].id
    c = insert_task(db, alice, project_id, doing_id, "C")
    lifecycle_service.archive_task(db, alice, board["b"].id)
    assert [o for _, o in column_orders(db, doing_id)] == [0, 2]

    move_task(db, alice, c.id, doing_id, 0)
    assert column_orders(db, doing_id) == [(c.id, 0), (board["a"].id, 1)]


def test_dense_after_every_move(db, board):
    alice = principal_for(board["alice"])
    project_id = board["project"].id
    todo_id, doing_id = board["todo"].id, board["doing"].id
    extra = [insert_task(db, alice, project_id, todo_id, f"T{i}").id for i in range(3)]
    moves = [
        (board["a"].id, todo_id, 1),
        (extra[0], doing_id, 0),
        (board["b"].id, todo_id, 0),
        (extra[2], doing_id, 5),
        (board["a"].id, todo_id, 3),
        (extra[1], todo_id, 0),
    ]
    for task_id, column_id, index in moves:
        move_task(db, alice, task_id, column_id, index)
        assert_dense(db, column_id)


def test_move_missing_task(db, board):
    with pytest.raises(NotFoundError):
        move_task(db, principal_for(board["alice"]), 99, board["todo"].id, 0)
    assert column_orders(db, board["doing"].id) == [(board["a"].id, 0), (board["b"].id, 1)]


def test_move_to_missing_column(db, board):
    with pytest.raises(NotFoundError):
        move_task(db, principal_for(board["alice"]), board["a"].id, 999, 0)
    db.expire_all()
    assert db.get(Task, board["a"].id).column_id == board["doing"].id


def test_move_to_column_of_other_project(db, board, make_user):
    owner = make_user()
    other = Project(title="Other", organizer_id=owner.id)
    db.add(other)
    db.commit()
    foreign = BoardColumn(project_id=other.id, title="Foreign", order=0)
    db.add(foreign)
    db.commit()

    with pytest.raises(NotFoundError):
        move_task(db, principal_for(board["dave"]), board["a"].id, foreign.id, 0)


def test_move_denied_for_outsider(db, board):
    with pytest.raises(DeniedError):
        move_task(db, principal_for(board["carol"]), board["a"].id, board["todo"].id, 0)


def test_move_archived_task_is_rejected(db, board):
    alice = principal_for(board["alice"])
    lifecycle_service.archive_task(db, alice, board["a"].id)
    with pytest.raises(ValidationFailure):
        move_task(db, alice, board["a"].id, board["todo"].id, 0)


def test_move_bumps_column_version(db, board):
    before = board["doing"].version
    move_task(db, principal_for(board["alice"]), board["a"].id, board["doing"].id, 1)
    db.expire_all()
    assert db.get(BoardColumn, board["doing"].id).version == before + 1


def test_stale_version_is_a_conflict(db, board):
    column_id = board["doing"].id
    current = board["doing"].version
    bump_column_version(db, column_id, current)
    db.commit()
    with pytest.raises(ConflictError):
        bump_column_version(db, column_id, current)


# ========== COLUMNS ==========

def test_member_adds_column_at_the_end(db, board):
    """Bob (membre) ajoute "Blocked" -> order = max + 1"""
    column = add_column(db, principal_for(board["bob"]), board["project"].id, "Blocked")
    assert column.order == 2
    assert column.title == "Blocked"


def test_first_column_gets_order_zero(db, make_user):
    owner = make_user()
    project = Project(title="Empty", organizer_id=owner.id)
    db.add(project)
    db.commit()
    column = add_column(db, principal_for(owner), project.id, "Backlog")
    assert column.order == 0


def test_add_column_requires_title(db, board):
    with pytest.raises(ValidationFailure):
        add_column(db, principal_for(board["alice"]), board["project"].id, "")


def test_add_column_denied_for_outsider(db, board):
    with pytest.raises(DeniedError):
        add_column(db, principal_for(board["carol"]), board["project"].id, "Blocked")


def test_delete_column_cascades_to_tasks(db, board):
    a_id, b_id = board["a"].id, board["b"].id
    removed = delete_column(db, principal_for(board["alice"]), board["doing"].id)
    assert removed == 2
    db.expire_all()
    assert db.get(Task, a_id) is None
    assert db.get(Task, b_id) is None


def test_member_cannot_delete_column(db, board):
    with pytest.raises(DeniedError):
        delete_column(db, principal_for(board["bob"]), board["doing"].id)


# ========== HTTP ==========

def test_move_card_endpoint(client, db, board):
    response = client.post(
        "/board/moveCard",
        json={"task_id": board["a"].id, "target_column_id": board["doing"].id, "index": 1},
        headers=headers_for(board["bob"])
    )
    assert response.status_code == 200
    assert response.json()["order"] == 1
    assert column_orders(db, board["doing"].id) == [(board["b"].id, 0), (board["a"].id, 1)]


def test_move_card_endpoint_not_found(client, board):
    response = client.post(
        "/board/moveCard",
        json={"task_id": 99, "target_column_id": 5, "index": 0},
        headers=headers_for(board["alice"])
    )
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_add_column_endpoint(client, board):
    response = client.post(
        "/board/addColumn",
        json={"project_id": board["project"].id, "title": "Blocked"},
        headers=headers_for(board["bob"])
    )
    assert response.status_code == 201
    assert response.json()["order"] == 2


# ========== CONCURRENCE ==========

def test_cross_column_move_bumps_source_version(db, board):
    before = board["doing"].version
    move_task(db, principal_for(board["alice"]), board["a"].id, board["todo"].id, 0)
    db.expire_all()
    assert db.get(BoardColumn, board["doing"].id).version == before + 1
    assert db.get(BoardColumn, board["todo"].id).version == 1


def test_interleaved_moves_keep_columns_dense(db, board, monkeypatch):
    """Deux workers (sessions séparées, pas de verrou partagé).

    Le worker 2 lit Doing pour remonter B; entre sa lecture et son écriture,
    le worker 1 sort A de Doing vers To Do et commit. L'écriture du worker 2
    est refusée au lieu de renuméroter A dans une colonne qu'il a quittée.
    """
    from contextlib import nullcontext

    from conftest import TestingSessionLocal
    from taskboard.services import ordering_service

    alice = principal_for(board["alice"])
    t1 = insert_task(db, alice, board["project"].id, board["todo"].id, "T1")
    a_id, b_id, todo_id, doing_id = board["a"].id, board["b"].id, board["todo"].id, board["doing"].id

    monkeypatch.setattr(ordering_service, "project_lock", lambda project_id: nullcontext())
    original_active_tasks = ordering_service.active_tasks
    worker1 = TestingSessionLocal()
    worker2 = TestingSessionLocal()
    interleaved = []

    def active_tasks_then_other_worker(session, column_id, exclude_task_id=None):
        result = original_active_tasks(session, column_id, exclude_task_id)
        if not interleaved:
            interleaved.append(True)
            move_task(worker1, alice, a_id, todo_id, 0)
        return result

    monkeypatch.setattr(ordering_service, "active_tasks", active_tasks_then_other_worker)
    try:
        with pytest.raises(ConflictError):
            move_task(worker2, alice, b_id, doing_id, 0)
    finally:
        worker1.close()
        worker2.close()

    assert column_orders(db, todo_id) == [(a_id, 0), (t1.id, 1)]
    assert column_orders(db, doing_id) == [(b_id, 1)]
    assert_dense(db, todo_id)
