import pytest

from horizon.app.media import cloudinary_client


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")


def test_upload_media_retries_then_succeeds(configured, monkeypatch):
    attempts = []
    sleeps = []

    def flaky_upload(file, **options):
        attempts.append(options)
        if len(attempts) < 3:
            raise RuntimeError("timeout")
        return {"secure_url": "https://res.cloudinary.com/demo/video/upload/clip.mp4"}

    monkeypatch.setattr(cloudinary_client.cloudinary.uploader, "upload", flaky_upload)

    result = cloudinary_client.upload_media("https://x/clip.mp4", "videos", resource_type="video", sleep=sleeps.append)

    assert result["status"] == "success"
    assert result["cloudinary_url"] == "https://res.cloudinary.com/demo/video/upload/clip.mp4"
    assert len(attempts) == 3
    assert sleeps == [1.0, 1.0]
    assert attempts[0]["timeout"] == 300


def test_upload_media_reports_final_failure(configured, monkeypatch):
    def broken_upload(file, **options):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(cloudinary_client.cloudinary.uploader, "upload", broken_upload)
    result = cloudinary_client.upload_media("data:image/png;base64,AA", "images", sleep=lambda _s: None)
    assert result == {"status": "error", "message": "quota exceeded"}


def test_upload_media_rejects_root_folder(configured):
    result = cloudinary_client.upload_media("x", "  ")
    assert result["status"] == "error"
    assert "Folder path is required" in result["message"]


def test_missing_credentials(monkeypatch):
    for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
        monkeypatch.delenv(name, raising=False)
    assert cloudinary_client.upload_media("x", "images") == {
        "status": "error",
        "message": "Missing Cloudinary credentials",
    }
    with pytest.raises(cloudinary_client.MediaConfigError):
        cloudinary_client.sign_upload()


def test_sign_upload_is_deterministic(configured):
    first = cloudinary_client.sign_upload(folder="feed", timestamp=1700000000)
    second = cloudinary_client.sign_upload(folder="feed", timestamp=1700000000)
    assert first == second
    assert first["folder"] == "feed"
    assert first["timestamp"] == 1700000000
