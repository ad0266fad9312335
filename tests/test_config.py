from family_finance import config


def test_api_key_prefers_gemini_variable(monkeypatch):
    monkeypatch.setenv('GEMINI_API_KEY', 'gemini-key')
    monkeypatch.setenv('API_KEY', 'fallback-key')
    assert config.get_api_key() == 'gemini-key'


def test_api_key_fallback_and_missing(monkeypatch):
    monkeypatch.delenv('GEMINI_API_KEY', raising=False)
    monkeypatch.setenv('API_KEY', 'fallback-key')
    assert config.get_api_key() == 'fallback-key'
    monkeypatch.setenv('API_KEY', '')
    assert config.get_api_key() is None


def test_ensure_data_directories(monkeypatch, tmp_path):
    target = tmp_path / 'data'
    monkeypatch.setattr(config, 'DATA_DIR', target)
    config.ensure_data_directories()
    assert target.is_dir()
