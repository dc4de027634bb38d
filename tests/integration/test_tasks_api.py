"""
API tests for Kanban columns and tasks, including the dense ordering of
both.
"""

import pytest

from src.database.models import RoleEnum


def column_titles(client, project_id, user, status_id):
    response = client.get(
        f"/api/projects/{project_id}/tasks?statusId={status_id}&limit=100", headers=user.headers
    )
    assert response.status_code == 200
    tasks = response.json()["data"]["data"]
    assert [t["order"] for t in tasks] == list(range(len(tasks)))
    return [t["title"] for t in tasks]


def column_names(client, project_id, user):
    response = client.get(f"/api/projects/{project_id}/statuses", headers=user.headers)
    columns = response.json()["data"]
    assert [c["order"] for c in columns] == list(range(len(columns)))
    return [c["name"] for c in columns]


# ==================== STATUS COLUMNS ====================

class TestStatuses:

    def test_append_status(self, client, maintainer, project):
        response = client.post(
            f"/api/projects/{project['id']}/statuses",
            json={"name": "DEPLOYED", "color": "#8B5CF6"},
            headers=maintainer.headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Task status created successfully."
        assert body["data"]["order"] == 4
        assert body["data"]["color"] == "#8B5CF6"

    def test_insert_status_shifts_others(self, client, maintainer, project):
        client.post(
            f"/api/projects/{project['id']}/statuses",
            json={"name": "BACKLOG", "order": 0},
            headers=maintainer.headers,
        )

        assert column_names(client, project["id"], maintainer) == [
            "BACKLOG", "TODO", "IN_PROGRESS", "CODE_REVIEW", "DONE",
        ]

    def test_insert_position_is_clamped(self, client, maintainer, project):
        response = client.post(
            f"/api/projects/{project['id']}/statuses",
            json={"name": "LATER", "order": 99},
            headers=maintainer.headers,
        )
        assert response.json()["data"]["order"] == 4

    @pytest.mark.parametrize("body", [
        {"name": ""},
        {"name": "x" * 51},
        {"name": "OK", "color": "red"},
        {"name": "OK", "color": "#12345"},
        {"name": "OK", "order": -1},
    ])
    def test_invalid_status_bodies(self, client, maintainer, project, body):
        response = client.post(
            f"/api/projects/{project['id']}/statuses", json=body, headers=maintainer.headers
        )
        assert response.status_code == 400

    def test_member_cannot_manage_statuses(self, client, maintainer, member, project, add_member):
        add_member(project["id"], maintainer, member)

        response = client.post(
            f"/api/projects/{project['id']}/statuses", json={"name": "X"}, headers=member.headers
        )
        assert response.status_code == 403

        # Reading is fine
        response = client.get(f"/api/projects/{project['id']}/statuses", headers=member.headers)
        assert response.status_code == 200

    def test_move_status_column(self, client, maintainer, project, statuses):
        response = client.patch(
            f"/api/projects/{project['id']}/statuses/{statuses['DONE']['id']}",
            json={"order": 0},
            headers=maintainer.headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Task status updated successfully."
        assert column_names(client, project["id"], maintainer) == [
            "DONE", "TODO", "IN_PROGRESS", "CODE_REVIEW",
        ]

    def test_move_status_right(self, client, maintainer, project, statuses):
        client.patch(
            f"/api/projects/{project['id']}/statuses/{statuses['TODO']['id']}",
            json={"order": 2},
            headers=maintainer.headers,
        )

        assert column_names(client, project["id"], maintainer) == [
            "IN_PROGRESS", "CODE_REVIEW", "TODO", "DONE",
        ]

    def test_rename_and_clear_color(self, client, maintainer, project):
        created = client.post(
            f"/api/projects/{project['id']}/statuses",
            json={"name": "QA", "color": "#FFFFFF"},
            headers=maintainer.headers,
        ).json()["data"]

        response = client.patch(
            f"/api/projects/{project['id']}/statuses/{created['id']}",
            json={"name": "TESTING", "color": None},
            headers=maintainer.headers,
        )

        data = response.json()["data"]
        assert data["name"] == "TESTING"
        assert data["color"] is None
        assert data["order"] == 4

    def test_status_of_other_project(self, client, maintainer, project, create_project):
        other = create_project(maintainer, "Other")
        other_columns = client.get(
            f"/api/projects/{other['id']}/statuses", headers=maintainer.headers
        ).json()["data"]

        response = client.patch(
            f"/api/projects/{project['id']}/statuses/{other_columns[0]['id']}",
            json={"name": "HIJACK"},
            headers=maintainer.headers,
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Task status does not belong to this project."

    def test_unknown_status(self, client, maintainer, project):
        response = client.patch(
            f"/api/projects/{project['id']}/statuses/00000000-0000-4000-8000-000000000000",
            json={"name": "X"},
            headers=maintainer.headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Task status not found."

    def test_reorder_all_columns(self, client, maintainer, project, statuses):
        wanted = ["DONE", "CODE_REVIEW", "IN_PROGRESS", "TODO"]

        response = client.put(
            f"/api/projects/{project['id']}/statuses/order",
            json={"statusIds": [statuses[name]["id"] for name in wanted]},
            headers=maintainer.headers,
        )

        assert response.status_code == 200
        assert [s["name"] for s in response.json()["data"]] == wanted
        assert column_names(client, project["id"], maintainer) == wanted

    def test_reorder_requires_full_permutation(self, client, maintainer, project, statuses):
        response = client.put(
            f"/api/projects/{project['id']}/statuses/order",
            json={"statusIds": [statuses["TODO"]["id"], statuses["DONE"]["id"]]},
            headers=maintainer.headers,
        )
        assert response.status_code == 400

        duplicated = [statuses["TODO"]["id"]] * 4
        response = client.put(
            f"/api/projects/{project['id']}/statuses/order",
            json={"statusIds": duplicated},
            headers=maintainer.headers,
        )
        assert response.status_code == 400

    def test_delete_status_compacts(self, client, maintainer, project, statuses):
        response = client.delete(
            f"/api/projects/{project['id']}/statuses/{statuses['IN_PROGRESS']['id']}",
            headers=maintainer.headers,
        )

        assert response.status_code == 204
        assert column_names(client, project["id"], maintainer) == ["TODO", "CODE_REVIEW", "DONE"]

    def test_delete_status_in_use(self, client, maintainer, project, statuses, create_task):
        create_task(project["id"], maintainer, statuses["TODO"]["id"])

        response = client.delete(
            f"/api/projects/{project['id']}/statuses/{statuses['TODO']['id']}",
            headers=maintainer.headers,
        )

        assert response.status_code == 409
        assert response.json()["message"].startswith("Cannot delete a status that is in use")

    def test_delete_status_after_its_tasks_were_deleted(
        self, client, maintainer, project, statuses, create_task
    ):
        task = create_task(project["id"], maintainer, statuses["TODO"]["id"])
        client.delete(f"/api/projects/{project['id']}/tasks/{task['id']}", headers=maintainer.headers)

        response = client.delete(
            f"/api/projects/{project['id']}/statuses/{statuses['TODO']['id']}",
            headers=maintainer.headers,
        )
        assert response.status_code == 204


# ==================== TASKS ====================

class TestCreateTask:

    def test_create_task(self, client, maintainer, member, project, statuses, add_member):
        add_member(project["id"], maintainer, member)

        response = client.post(
            f"/api/projects/{project['id']}/tasks",
            json={
                "title": "Write copy",
                "description": "Landing page",
                "statusId": statuses["TODO"]["id"],
                "assigneeId": member.id,
            },
            headers=member.headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Task created successfully."
        task = body["data"]
        assert task["title"] == "Write copy"
        assert task["order"] == 0
        assert task["status"]["name"] == "TODO"
        assert task["assignee"]["id"] == member.id
        assert "password" not in task["assignee"]

    def test_orders_append_and_insert(self, client, maintainer, project, statuses, create_task):
        todo = statuses["TODO"]["id"]
        create_task(project["id"], maintainer, todo, "A")
        create_task(project["id"], maintainer, todo, "B")
        create_task(project["id"], maintainer, todo, "first", order=0)
        create_task(project["id"], maintainer, todo, "last", order=50)

        assert column_titles(client, project["id"], maintainer, todo) == ["first", "A", "B", "last"]

    def test_columns_are_ordered_independently(self, client, maintainer, project, statuses, create_task):
        create_task(project["id"], maintainer, statuses["TODO"]["id"], "todo")
        done = create_task(project["id"], maintainer, statuses["DONE"]["id"], "done")
        assert done["order"] == 0

    def test_status_from_other_project(self, client, maintainer, project, create_project):
        other = create_project(maintainer, "Other")
        foreign = client.get(
            f"/api/projects/{other['id']}/statuses", headers=maintainer.headers
        ).json()["data"][0]

        response = client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"title": "T", "statusId": foreign["id"]},
            headers=maintainer.headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Task status does not belong to this project."

    def test_unknown_status(self, client, maintainer, project):
        response = client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"title": "T", "statusId": "00000000-0000-4000-8000-000000000000"},
            headers=maintainer.headers,
        )
        assert response.status_code == 404

    def test_unknown_assignee(self, client, maintainer, project, statuses):
        response = client.post(
            f"/api/projects/{project['id']}/tasks",
            json={
                "title": "T",
                "statusId": statuses["TODO"]["id"],
                "assigneeId": "00000000-0000-4000-8000-000000000000",
            },
            headers=maintainer.headers,
        )
        assert response.status_code == 404

    @pytest.mark.parametrize("body", [
        {"title": ""},
        {"title": "x" * 201},
        {"title": "ok", "description": "d" * 2001},
        {"title": "ok", "order": -1},
    ])
    def test_invalid_bodies(self, client, maintainer, project, statuses, body):
        body = {"statusId": statuses["TODO"]["id"], **body}
        response = client.post(
            f"/api/projects/{project['id']}/tasks", json=body, headers=maintainer.headers
        )
        assert response.status_code == 400

    def test_malformed_status_id(self, client, maintainer, project):
        response = client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"title": "T", "statusId": "todo"},
            headers=maintainer.headers,
        )
        assert response.status_code == 400

    def test_outsider_cannot_create(self, client, member, project, statuses):
        response = client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"title": "T", "statusId": statuses["TODO"]["id"]},
            headers=member.headers,
        )
        assert response.status_code == 403


class TestListAndGetTasks:

    def test_filters_and_search(self, client, maintainer, member, project, statuses, create_task, add_member):
        add_member(project["id"], maintainer, member)
        create_task(project["id"], maintainer, statuses["TODO"]["id"], "Design logo", assigneeId=member.id)
        create_task(project["id"], maintainer, statuses["DONE"]["id"], "Design footer")
        create_task(project["id"], maintainer, statuses["TODO"]["id"], "Deploy", description="logo assets")

        def titles(query):
            response = client.get(f"/api/projects/{project['id']}/tasks?{query}", headers=member.headers)
            assert response.status_code == 200
            return [t["title"] for t in response.json()["data"]["data"]]

        assert sorted(titles("search=DESIGN")) == ["Design footer", "Design logo"]
        assert sorted(titles("search=logo")) == ["Deploy", "Design logo"]
        assert titles(f"assigneeId={member.id}") == ["Design logo"]
        assert titles(f"statusId={statuses['DONE']['id']}") == ["Design footer"]
        assert titles("sortBy=title&sortOrder=desc") == ["Design logo", "Design footer", "Deploy"]

    def test_unknown_sort_field(self, client, maintainer, project):
        response = client.get(
            f"/api/projects/{project['id']}/tasks?sortBy=assignee", headers=maintainer.headers
        )
        assert response.status_code == 400

    def test_get_task(self, client, maintainer, project, statuses, create_task):
        task = create_task(project["id"], maintainer, statuses["TODO"]["id"])

        response = client.get(f"/api/projects/{project['id']}/tasks/{task['id']}", headers=maintainer.headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == task["id"]

    def test_task_of_other_project(self, client, maintainer, project, create_project, create_task):
        other = create_project(maintainer, "Other")
        foreign_status = client.get(
            f"/api/projects/{other['id']}/statuses", headers=maintainer.headers
        ).json()["data"][0]
        foreign = create_task(other["id"], maintainer, foreign_status["id"])

        response = client.get(
            f"/api/projects/{project['id']}/tasks/{foreign['id']}", headers=maintainer.headers
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Task does not belong to this project."

    def test_unknown_task(self, client, maintainer, project):
        response = client.get(
            f"/api/projects/{project['id']}/tasks/00000000-0000-4000-8000-000000000000",
            headers=maintainer.headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Task not found."


class TestUpdateAndMoveTask:

    @pytest.fixture
    def board(self, client, maintainer, project, statuses, create_task):
        """TODO: A, B, C   IN_PROGRESS: X"""
        todo, doing = statuses["TODO"]["id"], statuses["IN_PROGRESS"]["id"]
        tasks = {title: create_task(project["id"], maintainer, todo, title) for title in "ABC"}
        tasks["X"] = create_task(project["id"], maintainer, doing, "X")
        return {"todo": todo, "doing": doing, "tasks": tasks}

    def _move(self, client, user, project, task, status_id, order):
        response = client.post(
            f"/api/projects/{project['id']}/tasks/{task['id']}/move",
            json={"statusId": status_id, "order": order},
            headers=user.headers,
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]

    def _get(self, client, user, project, task):
        response = client.get(
            f"/api/projects/{project['id']}/tasks/{task['id']}", headers=user.headers
        )
        assert response.status_code == 200
        return response.json()["data"]

    def test_move_within_column_down(self, client, maintainer, project, board):
        moved = self._move(client, maintainer, project, board["tasks"]["A"], board["todo"], 2)

        assert moved["order"] == 2
        assert column_titles(client, project["id"], maintainer, board["todo"]) == ["B", "C", "A"]

    def test_move_within_column_up(self, client, maintainer, project, board):
        self._move(client, maintainer, project, board["tasks"]["C"], board["todo"], 0)
        assert column_titles(client, project["id"], maintainer, board["todo"]) == ["C", "A", "B"]

    def test_move_across_columns(self, client, maintainer, project, board, backdate_task):
        stamps = {
            title: backdate_task(project["id"], maintainer, board["tasks"][title]["id"])
            for title in ("C", "X")
        }

        moved = self._move(client, maintainer, project, board["tasks"]["B"], board["doing"], 0)

        assert moved["statusId"] == board["doing"]
        assert moved["status"]["name"] == "IN_PROGRESS"
        assert column_titles(client, project["id"], maintainer, board["todo"]) == ["A", "C"]
        assert column_titles(client, project["id"], maintainer, board["doing"]) == ["B", "X"]

        # C and X only shifted, they were not edited
        for title, stamp in stamps.items():
            task = self._get(client, maintainer, project, board["tasks"][title])
            assert task["updatedAt"] == stamp

    def test_move_order_is_clamped(self, client, maintainer, project, board):
        moved = self._move(client, maintainer, project, board["tasks"]["A"], board["doing"], 40)

        assert moved["order"] == 1
        assert column_titles(client, project["id"], maintainer, board["doing"]) == ["X", "A"]

    def test_patch_status_moves_to_end(self, client, maintainer, project, board):
        response = client.patch(
            f"/api/projects/{project['id']}/tasks/{board['tasks']['A']['id']}",
            json={"statusId": board["doing"]},
            headers=maintainer.headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Task updated successfully."
        assert column_titles(client, project["id"], maintainer, board["doing"]) == ["X", "A"]
        assert column_titles(client, project["id"], maintainer, board["todo"]) == ["B", "C"]

    def test_patch_fields(self, client, maintainer, member, project, board, add_member):
        add_member(project["id"], maintainer, member)
        task = board["tasks"]["A"]

        response = client.patch(
            f"/api/projects/{project['id']}/tasks/{task['id']}",
            json={"title": "A2", "description": "details", "assigneeId": member.id},
            headers=member.headers,
        )

        data = response.json()["data"]
        assert data["title"] == "A2"
        assert data["description"] == "details"
        assert data["assignee"]["id"] == member.id
        assert data["order"] == 0

        response = client.patch(
            f"/api/projects/{project['id']}/tasks/{task['id']}",
            json={"assigneeId": None},
            headers=member.headers,
        )
        assert response.json()["data"]["assignee"] is None

    def test_patch_rejects_null_title(self, client, maintainer, project, board):
        response = client.patch(
            f"/api/projects/{project['id']}/tasks/{board['tasks']['A']['id']}",
            json={"title": None},
            headers=maintainer.headers,
        )
        assert response.status_code == 400

    def test_move_requires_body(self, client, maintainer, project, board):
        response = client.post(
            f"/api/projects/{project['id']}/tasks/{board['tasks']['A']['id']}/move",
            json={"statusId": board["doing"]},
            headers=maintainer.headers,
        )
        assert response.status_code == 400


class TestDeleteTask:

    def test_owner_deletes_and_column_compacts(
        self, client, maintainer, project, statuses, create_task, backdate_task
    ):
        todo = statuses["TODO"]["id"]
        tasks = [create_task(project["id"], maintainer, todo, title) for title in ("A", "B", "C")]
        stamp = backdate_task(project["id"], maintainer, tasks[2]["id"])

        response = client.delete(
            f"/api/projects/{project['id']}/tasks/{tasks[0]['id']}", headers=maintainer.headers
        )

        assert response.status_code == 204
        assert column_titles(client, project["id"], maintainer, todo) == ["B", "C"]

        remaining = client.get(
            f"/api/projects/{project['id']}/tasks/{tasks[2]['id']}", headers=maintainer.headers
        ).json()["data"]
        assert remaining["order"] == 1
        assert remaining["updatedAt"] == stamp

        response = client.get(
            f"/api/projects/{project['id']}/tasks/{tasks[0]['id']}", headers=maintainer.headers
        )
        assert response.status_code == 404

    def test_new_task_after_delete_keeps_orders_dense(
        self, client, maintainer, project, statuses, create_task
    ):
        todo = statuses["TODO"]["id"]
        first = create_task(project["id"], maintainer, todo, "A")
        create_task(project["id"], maintainer, todo, "B")
        client.delete(f"/api/projects/{project['id']}/tasks/{first['id']}", headers=maintainer.headers)

        created = create_task(project["id"], maintainer, todo, "C")

        assert created["order"] == 1
        assert column_titles(client, project["id"], maintainer, todo) == ["B", "C"]

    def test_member_cannot_delete(self, client, maintainer, member, project, statuses, create_task, add_member):
        add_member(project["id"], maintainer, member)
        task = create_task(project["id"], member, statuses["TODO"]["id"])

        response = client.delete(
            f"/api/projects/{project['id']}/tasks/{task['id']}", headers=member.headers
        )
        assert response.status_code == 403

    def test_admin_deletes(self, client, admin, maintainer, project, statuses, create_task):
        task = create_task(project["id"], maintainer, statuses["TODO"]["id"])

        response = client.delete(
            f"/api/projects/{project['id']}/tasks/{task['id']}", headers=admin.headers
        )
        assert response.status_code == 204

    def test_other_maintainer_has_no_access(self, client, make_user, maintainer, project, statuses, create_task):
        task = create_task(project["id"], maintainer, statuses["TODO"]["id"])
        other = make_user(RoleEnum.MAINTAINER)

        response = client.delete(
            f"/api/projects/{project['id']}/tasks/{task['id']}", headers=other.headers
        )
        assert response.status_code == 403
