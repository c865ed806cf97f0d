"""Loading of application config files that contain secret references.

YAML has no tuples, so references are written with a tag::

    database:
      host: db.internal
      port: !gcp_secret [integer, DB_PORT]
      password: !gcp_secret [string, DB_PASSWORD, "3"]

The tag builds the same ``("gcp_secret", type, name[, version])`` tuple an
application would write in Python. Items are kept as raw strings so that an
unquoted version such as ``3`` is not turned into an int.
"""
import logging
from typing import Any

import yaml

from .config_loader import ConfigError
from .reference import SECRET_MARKER

logger = logging.getLogger(__name__)

SECRET_TAG = "!gcp_secret"


class AppConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands the !gcp_secret tag."""


def _construct_secret_reference(loader: yaml.SafeLoader, node: yaml.Node) -> tuple:
    if not isinstance(node, yaml.SequenceNode):
        raise yaml.constructor.ConstructorError(
            None, None,
            f"{SECRET_TAG} expects a sequence like [string, SECRET_NAME], got {node.id}",
            node.start_mark,
        )
    items = []
    for item in node.value:
        if not isinstance(item, yaml.ScalarNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"{SECRET_TAG} items must be scalars", item.start_mark
            )
        items.append(loader.construct_scalar(item))
    return (SECRET_MARKER, *items)


AppConfigLoader.add_constructor(SECRET_TAG, _construct_secret_reference)


def load_app_config(path: str) -> Any:
    """
    Load an application config YAML file, keeping secret references unresolved.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(path, 'r') as f:
            config = yaml.load(f, Loader=AppConfigLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse application config at {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read application config at {path}: {e}")

    logger.debug(f"Application config loaded from {path}")
    return config
