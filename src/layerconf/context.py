"""Application context holding the built configuration."""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from .exceptions import MissingConfigError

C = TypeVar("C")


class AppContext(Generic[C]):
    """Central application context holding configuration and shared state.

    The configuration is built once, before the context exists, and is only
    read afterwards.

    Example:
        ctx = AppContext.builder().with_config(ConfigBuilder().with_file("config.yaml").build()).build()
        port = ctx.config.server.port
    """

    __slots__ = ("_config",)

    def __init__(self, config: C):
        self._config = config

    @property
    def config(self) -> C:
        """The configuration attached when the context was built."""
        return self._config

    @staticmethod
    def builder() -> AppContextBuilder:
        """Create a new builder for constructing an ``AppContext``."""
        return AppContextBuilder()

    def __repr__(self) -> str:
        return f"AppContext(config={self._config!r})"


class AppContextBuilder(Generic[C]):
    """Builder for ``AppContext``, requiring a configuration before ``build``."""

    def __init__(self):
        self._config: Optional[C] = None

    def with_config(self, config: C) -> AppContextBuilder[C]:
        """Attach a configuration, typically the result of ``ConfigBuilder.build``."""
        self._config = config
        return self

    def build(self) -> AppContext[C]:
        """Build the context.

        Raises:
            MissingConfigError: If no configuration was attached
        """
        if self._config is None:
            raise MissingConfigError()
        return AppContext(self._config)
