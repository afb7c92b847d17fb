import pytest

from mockinterview.config import get_config, CRITERIA_WEIGHTS


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("HUGGINGFACE_API_KEY", "hf_test")
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "interview-project")
    for name in ("MOCKINTERVIEW_WEIGHTING_POLICY", "MOCKINTERVIEW_PROSODY_SEED", "MOCKINTERVIEW_SERVICE_TIMEOUT",
                 "MOCKINTERVIEW_GOOGLE_SPEECH", "GOOGLE_APPLICATION_CREDENTIALS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_config_from_environment(env):
    env.setenv("MOCKINTERVIEW_PROSODY_SEED", "42")
    env.setenv("MOCKINTERVIEW_SERVICE_TIMEOUT", "12.5")

    config = get_config()

    assert config.huggingface_api_key == "hf_test"
    assert config.google_cloud_project == "interview-project"
    assert config.prosody_seed == 42
    assert config.service_timeout == 12.5
    assert config.weighting_policy == "full_table"
    assert config.criteria_weights == CRITERIA_WEIGHTS


def test_missing_api_key_is_an_error(env):
    env.delenv("HUGGINGFACE_API_KEY")
    with pytest.raises(ValueError):
        get_config()


def test_unknown_weighting_policy_is_an_error(env):
    env.setenv("MOCKINTERVIEW_WEIGHTING_POLICY", "average")
    with pytest.raises(ValueError):
        get_config()


def test_criteria_weights_sum_to_one():
    assert sum(CRITERIA_WEIGHTS.values()) == pytest.approx(1.0)


def test_google_speech_follows_credentials(env):
    assert get_config().google_speech_enabled is False

    env.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/secrets/speech.json")
    assert get_config().google_speech_enabled is True

    env.setenv("MOCKINTERVIEW_GOOGLE_SPEECH", "false")
    assert get_config().google_speech_enabled is False
