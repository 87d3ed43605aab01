"""Signed URLs, uploads and signed downloads."""
from urllib.parse import urlparse

from jewelshop.services.storage_service import STOCK_IMAGES_BUCKET
from tests.conftest import OWNER_ID, OTHER_ID

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(client, auth, path, content=PNG, content_type="image/png", bucket=STOCK_IMAGES_BUCKET):
    return client.post(
        "/storage/upload",
        data={"bucket": bucket, "path": path},
        files={"file": ("photo.png", content, content_type)},
        headers=auth,
    )


class TestSignedUrl:
    def test_own_path(self, client, auth, fake_store):
        resp = client.post(
            "/storage/signed-url",
            json={"bucket": STOCK_IMAGES_BUCKET, "path": f"{OWNER_ID}/ring.png", "expiresIn": 600},
            headers=auth,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["signedUrl"].startswith("http://testserver/storage/files?token=")
        assert fake_store.calls == [("sign", STOCK_IMAGES_BUCKET, f"{OWNER_ID}/ring.png", 600)]

    def test_foreign_path_never_reaches_store(self, client, auth, fake_store):
        resp = client.post(
            "/storage/signed-url",
            json={"bucket": STOCK_IMAGES_BUCKET, "path": f"{OTHER_ID}/ring.png"},
            headers=auth,
        )
        assert resp.status_code == 403
        assert resp.json() == {"error": "Forbidden: You can only access your own files"}
        assert fake_store.calls == []

    def test_prefix_must_be_a_whole_segment(self, client, auth, fake_store):
        resp = client.post(
            "/storage/signed-url",
            json={"bucket": STOCK_IMAGES_BUCKET, "path": f"{OWNER_ID}-evil/ring.png"},
            headers=auth,
        )
        assert resp.status_code == 403
        assert fake_store.calls == []

    def test_bucket_and_path_required(self, client, auth, fake_store):
        resp = client.post("/storage/signed-url", json={"bucket": STOCK_IMAGES_BUCKET}, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Bucket and path are required"}

    def test_requires_auth(self, client, fake_store):
        resp = client.post("/storage/signed-url", json={"bucket": STOCK_IMAGES_BUCKET, "path": "x/y"})
        assert resp.status_code == 401
        assert fake_store.calls == []


class TestUploadAndDownload:
    def test_upload_then_download(self, client, auth, local_store):
        resp = _upload(client, auth, f"{OWNER_ID}/ring.png")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["path"] == f"{OWNER_ID}/ring.png"

        url = urlparse(data["signedUrl"])
        download = client.get(f"{url.path}?{url.query}")
        assert download.status_code == 200
        assert download.content == PNG

    def test_existing_object_conflicts(self, client, auth, local_store):
        _upload(client, auth, f"{OWNER_ID}/ring.png")
        resp = _upload(client, auth, f"{OWNER_ID}/ring.png")
        assert resp.status_code == 409
        assert resp.json() == {"error": "The resource already exists"}

    def test_foreign_directory_is_forbidden(self, client, auth, local_store):
        resp = _upload(client, auth, f"{OTHER_ID}/ring.png")
        assert resp.status_code == 403

    def test_path_traversal_is_refused(self, client, auth, local_store):
        resp = _upload(client, auth, f"{OWNER_ID}/../../escape.png")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid storage path"}

    def test_type_and_size_limits(self, client, auth, local_store):
        resp = _upload(client, auth, f"{OWNER_ID}/notes.txt", content=b"hello", content_type="text/plain")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid file type. Only images and PDFs are allowed."}

        too_big = b"\x00" * (5 * 1024 * 1024 + 1)
        resp = _upload(client, auth, f"{OWNER_ID}/big.png", content=too_big)
        assert resp.status_code == 400
        assert resp.json() == {"error": "File size exceeds 5MB limit"}

    def test_missing_fields(self, client, auth, local_store):
        resp = client.post("/storage/upload", data={"bucket": STOCK_IMAGES_BUCKET}, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "File, bucket, and path are required"}

    def test_tampered_or_expired_token(self, client, local_store):
        assert client.get("/storage/files?token=garbage").status_code == 403

        url = urlparse(local_store.create_signed_url(STOCK_IMAGES_BUCKET, f"{OWNER_ID}/x.png", expires_in=-10))
        resp = client.get(f"{url.path}?{url.query}")
        assert resp.status_code == 403
        assert resp.json() == {"error": "Signed URL has expired"}
