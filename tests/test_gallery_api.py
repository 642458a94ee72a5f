"""HTTP tests for the gallery media wall."""

import pytest

from tests.conftest import auth_header, make_admin, make_customer


@pytest.fixture
def admin(db):
    return make_admin(db)


def _upload(client, admin, filename="kitchen.jpg", content=b"\xff\xd8\xff0000", content_type="image/jpeg", **form):
    return client.post(
        "/api/gallery/upload",
        files={"media": (filename, content, content_type)},
        data=form,
        headers=auth_header(admin),
    )


def test_upload_and_list(client, admin, fake_r2):
    image = _upload(client, admin, title=" Before & after ", category="Kitchens")
    video = _upload(client, admin, filename="tour.mp4", content=b"\x00\x00\x00\x18ftypmp42", content_type="video/mp4")

    assert image.status_code == 201
    assert image.json()["media"]["Media_Type"] == "image"
    assert image.json()["media"]["Title"] == "Before & after"
    assert video.json()["media"]["Media_Type"] == "video"
    assert all(key.startswith("gallery/") for key in fake_r2.objects)

    everything = client.get("/api/gallery/media").json()["media"]
    assert len(everything) == 2

    kitchens = client.get("/api/gallery/media", params={"category": "kitchens"}).json()["media"]
    assert [m["Title"] for m in kitchens] == ["Before & after"]
    assert kitchens[0]["URL"].startswith("https://r2.test/gallery/")


def test_rejects_other_file_types(client, admin, fake_r2):
    response = _upload(client, admin, filename="doc.pdf", content=b"%PDF-1.4", content_type="application/pdf")
    assert response.status_code == 400
    assert fake_r2.objects == {}


def test_upload_requires_admin(client, db):
    customer = make_customer(db)
    response = client.post(
        "/api/gallery/upload",
        files={"media": ("kitchen.jpg", b"\xff\xd8\xff0000", "image/jpeg")},
        headers=auth_header(customer),
    )
    assert response.status_code == 403


def test_delete(client, admin, fake_r2):
    media_id = _upload(client, admin).json()["media"]["ID"]
    key = next(iter(fake_r2.objects))

    assert client.delete(f"/api/gallery/media/{media_id}", headers=auth_header(admin)).status_code == 200
    assert fake_r2.deleted == [key]
    assert client.get("/api/gallery/media").json()["media"] == []
    assert client.delete(f"/api/gallery/media/{media_id}", headers=auth_header(admin)).status_code == 404
