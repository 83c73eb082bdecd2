import pytest

from ssm_document import config


class TestIntFromEnv:
    def test_value(self, monkeypatch):
        monkeypatch.setenv("SSM_DOCUMENT_TEST_VALUE", "15")
        assert config.get_int_from_env("SSM_DOCUMENT_TEST_VALUE", 30) == 15

    @pytest.mark.parametrize("value", ["", "  ", "abc", "0", "-5", "1.5"])
    def test_invalid_values_fall_back_to_default(self, monkeypatch, value):
        monkeypatch.setenv("SSM_DOCUMENT_TEST_VALUE", value)
        assert config.get_int_from_env("SSM_DOCUMENT_TEST_VALUE", 30) == 30

    def test_unset(self, monkeypatch):
        monkeypatch.delenv("SSM_DOCUMENT_TEST_VALUE", raising=False)
        assert config.get_int_from_env("SSM_DOCUMENT_TEST_VALUE", 30) == 30


class TestStabilizationRetries:
    def test_default_budget(self):
        assert config.get_stabilization_retries(600, 30) == 20

    def test_budget_follows_delay(self):
        assert config.get_stabilization_retries(600, 15) == 40
        assert config.get_stabilization_retries(600, 60) == 10
        assert config.get_stabilization_retries(100, 30) == 3

    def test_at_least_one_poll(self):
        assert config.get_stabilization_retries(10, 30) == 1

    @pytest.mark.parametrize("delay", [0, -30])
    def test_invalid_delay(self, delay):
        with pytest.raises(ValueError):
            config.get_stabilization_retries(600, delay)

    @pytest.mark.parametrize("timeout", [0, -600])
    def test_invalid_timeout(self, timeout):
        with pytest.raises(ValueError):
            config.get_stabilization_retries(timeout, 30)


class TestEnvFlags:
    @pytest.mark.parametrize("value,expected", [("1", True), ("true", True), ("0", False), ("", False)])
    def test_is_env_true(self, monkeypatch, value, expected):
        monkeypatch.setenv("SSM_DOCUMENT_TEST_FLAG", value)
        assert config.is_env_true("SSM_DOCUMENT_TEST_FLAG") is expected

    @pytest.mark.parametrize(
        "value,expected", [("debug", "debug"), ("TRACE", "trace"), ("verbose", False), ("", False)]
    )
    def test_eval_log_type(self, monkeypatch, value, expected):
        monkeypatch.setenv("SSM_DOCUMENT_TEST_LOG", value)
        assert config.eval_log_type("SSM_DOCUMENT_TEST_LOG") == expected

    def test_trace_logging(self, monkeypatch):
        monkeypatch.setattr(config, "SSM_DOCUMENT_LOG", "trace")
        assert config.is_trace_logging_enabled()
        monkeypatch.setattr(config, "SSM_DOCUMENT_LOG", "debug")
        assert not config.is_trace_logging_enabled()
