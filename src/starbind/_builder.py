from __future__ import annotations

import importlib.util
import logging
import os
from collections.abc import Mapping
from typing import Any

from ._configuration import Configuration, ConfigurationError
from ._engine import DIContainer
from ._services import default_services


logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
ENGINE_SETTINGS_KEY = "di"


class ContainerBuilder:
    """Helper to create and configure a container.

    Default Starlette services are included in the generated container.
    """

    @classmethod
    def build(
        cls,
        values: Mapping[Any, Any] | None = None,
        definitions: Mapping[Any, Any] | None = None,
    ) -> DIContainer:
        """Build a container.

        `values["settings"]` holds the application settings; its optional
        ``"di"`` block configures the engine (a `Configuration` or a mapping of
        its options). Later layers override earlier ones: default services,
        the remaining `values`, configuration definition sources, then
        `definitions`.

        Example:
          container = ContainerBuilder.build(
              {"settings": {"display_error_details": True, "di": {"use_autowiring": False}}},
              {"mailer": lambda c: Mailer(c.get("settings")["smtp_host"])},
          )

        """
        values = dict(values or {})
        user_settings = values.pop(SETTINGS_KEY, None) or {}
        if not isinstance(user_settings, Mapping):
            msg = f"Settings must be a mapping, {type(user_settings).__name__} given"
            raise ConfigurationError(msg)

        configuration = cls._configuration(user_settings.get(ENGINE_SETTINGS_KEY))

        container = configuration.container_class(
            use_autowiring=configuration.use_autowiring,
            definition_cache=configuration.definitions_cache,
            wrap_container=configuration.wrap_container,
            proxies_path=configuration.proxies_path,
            compilation_path=configuration.compilation_path,
        )

        # Add default services definitions
        container.add_definitions(default_services(user_settings))

        # Add settings services definitions
        container.add_definitions(values)

        # Add configured definition sources
        for source in configuration.definitions:
            container.add_definitions(load_definitions(source))

        # Add custom service definitions
        container.add_definitions(definitions or {})

        logger.debug(
            "Built %s (autowiring %s, %d definition sources)",
            type(container).__name__,
            "on" if configuration.use_autowiring else "off",
            len(configuration.definitions),
        )
        return container

    @staticmethod
    def _configuration(engine_settings: Any) -> Configuration:
        if isinstance(engine_settings, Configuration):
            return engine_settings

        if isinstance(engine_settings, Mapping):
            return Configuration(engine_settings)

        if engine_settings is not None:
            logger.warning(
                "Ignoring '%s' settings: expected a mapping or Configuration, got %s",
                ENGINE_SETTINGS_KEY,
                type(engine_settings).__name__,
            )

        return Configuration()


def load_definitions(source: Mapping[Any, Any] | str) -> Mapping[Any, Any]:
    """Definitions from a mapping, a Python file or a directory of Python files.

    Files must expose a module-level ``definitions`` mapping. Directory files
    are loaded in name order, later files overriding earlier ones.
    """
    if isinstance(source, Mapping):
        return source

    if os.path.isdir(source):
        merged: dict[Any, Any] = {}
        for entry in sorted(os.listdir(source)):
            path = os.path.join(source, entry)
            if entry.endswith(".py") and os.path.isfile(path):
                merged.update(_load_file(path))
        return merged

    return _load_file(source)


def _load_file(path: str) -> Mapping[Any, Any]:
    if not os.path.isfile(path):
        msg = f"Definition file {path} does not exist"
        raise ConfigurationError(msg)

    module_name = "_starbind_definitions_" + os.path.splitext(os.path.basename(path))[0]
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Definition file {path} is not a Python module"
        raise ConfigurationError(msg)

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    definitions = getattr(module, "definitions", None)
    if not isinstance(definitions, Mapping):
        msg = f"Definition file {path} must define a 'definitions' mapping"
        raise ConfigurationError(msg)

    logger.debug("Loaded %d definitions from %s", len(definitions), path)
    return definitions
