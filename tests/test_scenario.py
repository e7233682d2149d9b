"""End-to-end walk through the API: build a hierarchy, upload, list, ask."""

from pathlib import Path


def test_upload_then_list_then_ask(client, upload, fake_backend, app_config, pdf_bytes):
    course = client.post("/api/courses", json={"name": "CS"}).json()
    year = client.post(
        f"/api/courses/{course['id']}/years", json={"year_number": 1, "name": "Year 1"}
    ).json()
    semester = client.post(
        f"/api/years/{year['id']}/semesters", json={"semester_number": 1, "name": "Sem 1"}
    ).json()
    unit = client.post(
        f"/api/semesters/{semester['id']}/units",
        json={"code": "CS101", "name": "Intro to Programming"},
    ).json()

    response = upload(unit["id"], ("Week 1 Notes.pdf", pdf_bytes))
    assert response.status_code == 200

    documents = client.get(f"/api/units/{unit['id']}/documents").json()
    assert len(documents) == 1
    (document,) = documents
    assert document["original_filename"] == "Week 1 Notes.pdf"
    assert document["filename"] != document["original_filename"]
    assert " " not in document["filename"]

    stored = Path(document["file_path"])
    assert stored.parent == app_config.paths.upload_dir / f"unit-{unit['id']}"
    assert stored.read_bytes() == pdf_bytes

    (forwarded,) = fake_backend.calls("/upload")
    assert b'"unit_name": "Intro to Programming"' in forwarded.content

    answer = client.post(
        "/api/ask", json={"question": "What is covered?", "courseId": course["id"]}
    ).json()
    assert answer["answer"] == "Binary search halves the interval each step."
    assert answer["context"] == "Searched documents from a specific course."
