"""Unit tests for TalkbackConfig."""

from pathlib import Path

import pytest

from talkback.config import DEFAULT_CONFIG, TalkbackConfig
from talkback.errors import MissingCredential


@pytest.fixture
def write_config(tmp_path):
    def writer(text: str) -> Path:
        path = tmp_path / "talkback.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return writer


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("TALKBACK_KEY", raising=False)
    return monkeypatch


@pytest.mark.unit
class TestTalkbackConfig:
    
    def test_defaults_without_file(self):
        config = TalkbackConfig()
        
        assert config.config_file is None
        assert config.get('transcription.model') == "whisper-1"
        assert config.get('completion.model') == "gpt-3.5-turbo"
        assert config.get('synthesis.model') == "tts-1"
        assert config.get('synthesis.voice') == "alloy"
        assert config.get('openai.base_url') == "https://api.openai.com/v1"
        assert config.get_timeout() == 30.0
        assert config.get('logging.console_output') is False
    
    def test_defaults_are_not_shared(self):
        config = TalkbackConfig()
        config.set('synthesis.voice', 'nova')
        
        assert DEFAULT_CONFIG['synthesis']['voice'] == 'alloy'
    
    def test_file_overrides_are_merged(self, write_config):
        path = write_config("completion:\n  model: gpt-4o-mini\nsynthesis:\n  voice: echo\n")
        
        config = TalkbackConfig(str(path))
        
        assert config.get('completion.model') == "gpt-4o-mini"
        assert config.get('synthesis.voice') == "echo"
        assert config.get('synthesis.model') == "tts-1"
        assert config.get('transcription.model') == "whisper-1"
    
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TalkbackConfig(str(tmp_path / "absent.yaml"))
    
    def test_empty_file(self, write_config):
        with pytest.raises(ValueError, match="empty"):
            TalkbackConfig(str(write_config("")))
    
    def test_invalid_yaml(self, write_config):
        with pytest.raises(ValueError, match="Invalid YAML"):
            TalkbackConfig(str(write_config("completion: [unclosed\n")))
    
    def test_relative_paths_resolve_against_config_dir(self, write_config, tmp_path):
        path = write_config("audio:\n  recordings_dir: recs\nlogging:\n  file_path: logs/app.log\n")
        
        config = TalkbackConfig(str(path))
        
        assert config.get_recordings_dir() == str(tmp_path / "recs")
        assert config.get('logging.file_path') == str(tmp_path / "logs" / "app.log")
    
    def test_recordings_dir_unset(self):
        assert TalkbackConfig().get_recordings_dir() is None
    
    def test_get_with_default_and_set(self):
        config = TalkbackConfig()
        
        assert config.get('does.not.exist', 'fallback') == 'fallback'
        config.set('new.nested.key', 5)
        assert config.get('new.nested.key') == 5
    
    def test_non_positive_timeout(self, write_config):
        config = TalkbackConfig(str(write_config("openai:\n  timeout_seconds: 0\n")))
        
        with pytest.raises(ValueError):
            config.get_timeout()


@pytest.mark.unit
class TestApiKey:
    
    def test_missing_credential(self, clean_env):
        with pytest.raises(MissingCredential, match="OPENAI_API_KEY"):
            TalkbackConfig().get_api_key()
    
    def test_from_environment(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-env")
        
        assert TalkbackConfig().get_api_key() == "sk-env"
    
    def test_custom_environment_variable(self, clean_env, write_config):
        clean_env.setenv("TALKBACK_KEY", "sk-custom")
        config = TalkbackConfig(str(write_config("openai:\n  api_key_env: TALKBACK_KEY\n")))
        
        assert config.get_api_key() == "sk-custom"
    
    def test_from_file(self, clean_env, write_config):
        config = TalkbackConfig(str(write_config("openai:\n  api_key: sk-file\n")))
        
        assert config.get_api_key() == "sk-file"
    
    def test_environment_wins_over_file(self, clean_env, write_config):
        clean_env.setenv("OPENAI_API_KEY", "sk-env")
        config = TalkbackConfig(str(write_config("openai:\n  api_key: sk-file\n")))
        
        assert config.get_api_key() == "sk-env"
