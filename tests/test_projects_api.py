import asyncio
from config import settings
from schemas.scene import Annotation, ChatMessageIn
from models.annotation import AnnotationRecord
from models.chat_message import ChatMessageRecord


def test_create_and_list_projects(client):
    r = client.post("/api/v1/projects/", json={"title": "Engine block"})
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["title"] == "Engine block"
    assert "createdAt" in created

    r = client.get("/api/v1/projects/")
    assert r.status_code == 200
    assert [p["title"] for p in r.json()] == ["Engine block"]

    r = client.get(f"/api/v1/projects/{created['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == created["id"]


def test_create_requires_title(client):
    r = client.post("/api/v1/projects/", json={"title": ""})
    assert r.status_code == 422


def test_new_project_scene_defaults(client):
    pid = client.post("/api/v1/projects/", json={"title": "Fresh"}).json()["id"]
    scene = client.get(f"/api/v1/projects/{pid}/scene").json()
    assert scene["object"]["position"] == {"x": 0, "y": 0, "z": 0}
    assert scene["object"]["rotation"] == {"x": 0, "y": 0, "z": 0}
    assert scene["object"]["scale"] == {"x": 1, "y": 1, "z": 1}
    assert scene["object"]["modelRef"] is None
    assert scene["camera"] is None
    assert scene["annotations"] == []
    assert scene["chat"] == []


def test_delete_project_removes_scene_rows(client, store, db_session):
    pid = client.post("/api/v1/projects/", json={"title": "Doomed"}).json()["id"]

    async def _seed():
        await store.append_annotation(pid, Annotation(id="a1"))
        await store.append_chat(pid, ChatMessageIn(author="ana", text="hi"))
    asyncio.run(_seed())

    r = client.delete(f"/api/v1/projects/{pid}")
    assert r.status_code == 200
    assert client.get(f"/api/v1/projects/{pid}").status_code == 404
    assert client.get(f"/api/v1/projects/{pid}/scene").status_code == 404
    assert db_session.query(AnnotationRecord).filter_by(project_id=pid).count() == 0
    assert db_session.query(ChatMessageRecord).filter_by(project_id=pid).count() == 0


def test_unknown_project_is_404(client):
    assert client.get("/api/v1/projects/123").status_code == 404
    assert client.delete("/api/v1/projects/123").status_code == 404


def test_upload_model_returns_servable_reference(client):
    body = b"glTF-binary-content"
    r = client.post("/api/v1/assets/", files={"file": ("part.glb", body, "model/gltf-binary")})
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["modelRef"].startswith("/uploads/")
    assert data["modelRef"].endswith(".glb")
    assert data["size"] == len(body)
    served = client.get(data["modelRef"])
    assert served.status_code == 200
    assert served.content == body


def test_upload_rejects_unsupported_extension(client):
    r = client.post("/api/v1/assets/", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400


def test_upload_rejects_oversized_file(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    r = client.post("/api/v1/assets/", files={"file": ("big.obj", b"0123456789", "text/plain")})
    assert r.status_code == 413


def test_upload_endpoint_runs_in_threadpool():
    # Plain def endpoints are run off the event loop by FastAPI
    import inspect
    from endpoints.assets import upload_model
    assert not inspect.iscoroutinefunction(upload_model)
