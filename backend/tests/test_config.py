from config import load_settings


def test_defaults(monkeypatch):
    for name in ("LLM_MODEL", "LLM_TIMEOUT_SECONDS", "LLM_MAX_RETRIES", "CORS_ORIGINS",
                 "LOG_LEVEL", "MAX_UPLOAD_BYTES", "PUBLIC_UPLOAD_BASE"):
        monkeypatch.delenv(name, raising=False)
    s = load_settings()
    assert s.llm_model == "claude-haiku-4-5"
    assert s.llm_timeout_seconds == 30
    assert s.llm_max_retries == 0
    assert s.cors_origins == []
    assert s.log_level == "INFO"
    assert s.max_upload_bytes == 10 * 1024 * 1024
    assert s.public_upload_base == "/uploads"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "5.5")
    monkeypatch.setenv("LLM_MAX_RETRIES", "2")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = load_settings()
    assert s.llm_timeout_seconds == 5.5
    assert s.llm_max_retries == 2
    assert s.cors_origins == ["http://a.test", "http://b.test"]
    assert s.log_level == "DEBUG"
