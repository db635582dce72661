from reconcile import ClassroomState
from schemas.discussion import Post


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "connections": 0, "rooms": 0}


class TestPostsApi:
    def test_post_crud(self, client):
        created = client.post("/sessions/S1/posts/", json={"author": "u1", "content": "Question about HW"})
        assert created.status_code == 201
        post_id = created.json()["id"]

        updated = client.patch(f"/sessions/S1/posts/{post_id}", json={"content": "Question about HW 2"})
        assert updated.json()["content"] == "Question about HW 2"

        likes = client.patch(f"/sessions/S1/posts/{post_id}/like", json={"user_id": "u7"})
        assert likes.json() == {"likes": ["u7"]}

        listed = client.get("/sessions/S1/posts/")
        assert [p["id"] for p in listed.json()] == [post_id]

        deleted = client.delete(f"/sessions/S1/posts/{post_id}")
        assert deleted.status_code == 200
        assert client.get("/sessions/S1/posts/").json() == []

    def test_comments_and_replies(self, client):
        post_id = client.post("/sessions/S1/posts/", json={"author": "u1", "content": "topic"}).json()["id"]
        comment = client.post(f"/sessions/S1/posts/{post_id}/comments", json={"author": "u2", "content": "c"})
        assert comment.status_code == 201
        comment_id = comment.json()["id"]

        reply = client.post(
            f"/sessions/S1/posts/{post_id}/comments/{comment_id}/replies", json={"author": "u3", "content": "r"}
        )
        assert reply.status_code == 201
        reply_id = reply.json()["id"]

        edited = client.patch(
            f"/sessions/S1/posts/{post_id}/comments/{comment_id}/replies/{reply_id}", json={"content": "r2"}
        )
        assert edited.json()["content"] == "r2"

        liked = client.patch(f"/sessions/S1/posts/{post_id}/comments/{comment_id}/like", json={"user_id": "u1"})
        assert liked.json() == {"likes": ["u1"]}

        assert client.delete(f"/sessions/S1/posts/{post_id}/comments/{comment_id}").status_code == 200
        assert client.get("/sessions/S1/posts/").json()[0]["comments"] == []

    def test_unknown_post_is_404(self, client):
        response = client.patch("/sessions/S1/posts/nope", json={"content": "x"})
        assert response.status_code == 404
        assert client.post("/sessions/S1/posts/nope/comments", json={"author": "u", "content": "x"}).status_code == 404

    def test_validation(self, client):
        assert client.post("/sessions/S1/posts/", json={"author": "u1", "content": ""}).status_code == 422
        assert client.post("/sessions/S1/posts/", json={"author": "u1", "content": "   "}).status_code == 422
        assert client.get("/sessions/S1/posts/").json() == []

        post_id = client.post("/sessions/S1/posts/", json={"author": "u1", "content": "  topic  "}).json()["id"]
        assert client.patch(f"/sessions/S1/posts/{post_id}", json={"content": "\n\t"}).status_code == 422
        blank_comment = {"author": "u2", "content": "  "}
        assert client.post(f"/sessions/S1/posts/{post_id}/comments", json=blank_comment).status_code == 422
        assert client.get("/sessions/S1/posts/").json()[0]["content"] == "topic"

        assert client.post("/sessions/S1/attendance/", json={"student_id": "s1", "status": "late"}).status_code == 422


class TestLiveRoom:
    def connect(self, client, role="student", name="someone"):
        return client.websocket_connect(f"/ws?role={role}&display_name={name}")

    def join(self, ws, room_id):
        welcome = ws.receive_json()
        assert welcome["type"] == "system"
        ws.send_json({"type": "join", "room_id": room_id})
        joined = ws.receive_json()
        assert joined["tag"] == "participant-joined"
        assert joined["payload"]["connection_id"] == welcome["connection_id"]
        return welcome["connection_id"]

    def test_rest_write_reaches_room_members(self, client):
        with self.connect(client, "teacher", "Ms T") as ws:
            self.join(ws, "S1")
            state = ClassroomState("S1")

            post = client.post("/sessions/S1/posts/", json={"author": "u1", "content": "Welcome"}).json()
            frame = ws.receive_json()
            assert frame["tag"] == "post-created"
            assert frame["sender"] is None
            state.apply_frame(frame)

            client.post("/sessions/S1/attendance/", json={"student_id": "s1", "status": "present"})
            state.apply_frame(ws.receive_json())

            assert state.discussion.find_post(post["id"]).content == "Welcome"
            assert state.attendance.status_of("s1") == "present"

    def test_author_echo_replaces_provisional_post(self, client):
        with self.connect(client, "student", "Sam") as ws:
            self.join(ws, "S1")
            state = ClassroomState("S1")
            temp = state.discussion.add_provisional_post("S1", "u1", "Is there a quiz?")

            body = {"author": "u1", "content": "Is there a quiz?", "client_id": temp}
            created = client.post("/sessions/S1/posts/", json=body).json()
            frame = ws.receive_json()
            assert frame["payload"]["client_id"] == temp
            state.apply_frame(frame)
            state.discussion.confirm_post(temp, Post.model_validate(created))

            assert [p.id for p in state.discussion.posts] == [created["id"]]

    def test_whiteboard_between_two_participants(self, client):
        with self.connect(client, "teacher", "Teacher") as teacher, self.connect(client, "student", "Student") as student:
            teacher_id = self.join(teacher, "S1")
            student_id = self.join(student, "S1")
            assert teacher.receive_json()["payload"]["connection_id"] == student_id

            teacher_state = ClassroomState("S1")
            stroke = {"x0": 5, "y0": 5, "x1": 50, "y1": 50, "color": "red", "line_width": 2}
            student.send_json({"type": "event", "room_id": "S1", "tag": "draw-segment", "payload": stroke})

            frame = teacher.receive_json()
            assert frame["tag"] == "draw-segment"
            assert frame["sender"] == student_id
            teacher_state.apply_frame(frame)
            assert len(teacher_state.whiteboard) == 1

            # Clear is echoed to the sender too; the stroke was not
            teacher.send_json({"type": "event", "room_id": "S1", "tag": "clear-board", "payload": {}})
            assert student.receive_json()["tag"] == "clear-board"
            echoed = teacher.receive_json()
            assert echoed["tag"] == "clear-board"
            assert echoed["sender"] == teacher_id
            teacher_state.apply_frame(echoed)
            assert len(teacher_state.whiteboard) == 0

    def test_malformed_frames_keep_connection_open(self, client):
        with self.connect(client) as ws:
            self.join(ws, "S1")
            ws.send_text("definitely not json")
            ws.send_json({"type": "event", "room_id": "S1", "tag": "no-such-tag", "payload": {}})
            ws.send_json({"type": "event", "room_id": "S1", "tag": "clear-board", "payload": {}})
            assert ws.receive_json()["tag"] == "clear-board"

    def test_room_details_and_disconnect(self, client, relay):
        with self.connect(client, "teacher", "Ms T") as ws:
            connection_id = self.join(ws, "S1")

            details = client.get("/rooms/S1").json()
            assert details["online_users_count"] == 1
            assert details["online_users"][0]["connection_id"] == connection_id
            assert details["online_users"][0]["role"] == "teacher"
            assert details["online_users"][0]["display_name"] == "Ms T"
            assert client.get("/rooms/").json() == {"rooms": {"S1": 1}}

        # Closing the socket is an implicit leave
        assert client.get("/rooms/S1").json()["online_users_count"] == 0
        assert relay.registry.room_ids() == frozenset()
