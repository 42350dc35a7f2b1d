"""Test cases for the LayerConf application context."""

import pytest

from layerconf import AppContext, ConfigBuilder, MissingConfigError


def test_context_holds_config():
    config = ConfigBuilder().with_dict({"server": {"port": 8080}}).build()
    ctx = AppContext.builder().with_config(config).build()

    assert ctx.config is config
    assert ctx.config.server.port == 8080


def test_context_requires_config():
    """Test building a context without configuration.

    Given 未提供設置的 AppContextBuilder
    When 建立 AppContext
    Then 拋出 MissingConfigError
    """
    with pytest.raises(MissingConfigError, match="requires a configuration"):
        AppContext.builder().build()


def test_context_config_is_read_only():
    ctx = AppContext.builder().with_config(ConfigBuilder().build()).build()
    with pytest.raises(AttributeError):
        ctx.config = None
