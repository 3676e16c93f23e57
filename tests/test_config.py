from moodshot.config import _parse_allowed_origins, get_settings


def test_parse_allowed_origins_with_paths() -> None:
    raw = "https://example.com/app, https://demo.com/sub"
    assert _parse_allowed_origins(raw) == [
        "https://example.com",
        "https://demo.com",
    ]


def test_parse_allowed_origins_with_wildcard() -> None:
    assert _parse_allowed_origins("https://example.com,*") == ["*"]


def test_parse_allowed_origins_deduplicates_and_handles_empty() -> None:
    raw = " https://example.com/ , https://example.com ,"
    assert _parse_allowed_origins(raw) == ["https://example.com"]


def test_parse_allowed_origins_defaults_to_wildcard() -> None:
    assert _parse_allowed_origins("") == ["*"]
    assert _parse_allowed_origins(None) == ["*"]


def test_settings_report_missing_credentials(monkeypatch) -> None:
    for name in ("REPLICATE_API_TOKEN", "IMGBB_API_KEY", "IMAGE_HOST"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.image_host == "imgbb"
        assert settings.missing_credentials() == ["REPLICATE_API_TOKEN", "IMGBB_API_KEY"]
    finally:
        get_settings.cache_clear()


def test_settings_from_env(monkeypatch, configured_env) -> None:
    monkeypatch.setenv("MOODSHOT_MODEL", "nano-banana-pro")
    monkeypatch.setenv("GENERATION_TIMEOUT", "not-a-number")
    monkeypatch.setenv("COST_PER_IMAGE", "0.04")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.missing_credentials() == []
    assert settings.replicate.model == "nano-banana-pro"
    assert settings.replicate.timeout == 120.0
    assert settings.cost_per_image == 0.04
    assert settings.imgbb.upload_url == "https://api.imgbb.com/1/upload"


def test_r2_host_requires_r2_credentials(monkeypatch, configured_env) -> None:
    monkeypatch.setenv("IMAGE_HOST", "r2")
    for name in ("R2_ENDPOINT", "S3_ENDPOINT", "R2_ACCESS_KEY_ID", "S3_ACCESS_KEY",
                 "R2_SECRET_ACCESS_KEY", "S3_SECRET_KEY", "R2_BUCKET", "S3_BUCKET"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    assert get_settings().missing_credentials() == [
        "R2_ENDPOINT/R2_ACCESS_KEY_ID/R2_SECRET_ACCESS_KEY/R2_BUCKET"
    ]

    monkeypatch.setenv("R2_ENDPOINT", "https://acc.r2.cloudflarestorage.com")
    monkeypatch.setenv("R2_ACCESS_KEY_ID", "key")
    monkeypatch.setenv("R2_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("R2_BUCKET", "moodshots")
    get_settings.cache_clear()
    assert get_settings().missing_credentials() == []
