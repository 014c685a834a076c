"""Site configuration read from a Jekyll-style ``_config.yml``."""

import logging
import os
from dataclasses import dataclass, fields

import yaml

from .models import DEFAULT_LAYOUT

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "_config.yml"

ENV_SOURCE = "POSTS_TO_SITE_SOURCE"
ENV_DESTINATION = "POSTS_TO_SITE_DESTINATION"


class ConfigError(Exception):
    """The configuration file exists but cannot be used."""


@dataclass
class SiteConfig:
    title: str = "My Blog"
    description: str = ""
    url: str = ""
    baseurl: str = ""
    permalink: str = "date"
    source: str = "."
    posts_dir: str = "_posts"
    destination: str = "_site"
    default_layout: str = DEFAULT_LAYOUT
    date_format: str = "%B %d, %Y"

    @property
    def posts_path(self):
        return os.path.join(self.source, self.posts_dir)

    @property
    def destination_path(self):
        if os.path.isabs(self.destination):
            return self.destination
        return os.path.join(self.source, self.destination)


def load_config(path=None, source=None):
    """Load the site configuration.

    ``path`` defaults to ``_config.yml`` inside ``source``. A missing file
    gives the defaults. Environment variables override the file; the
    ``source`` argument overrides both.
    """
    source = source or os.environ.get(ENV_SOURCE) or "."
    if path is None:
        path = os.path.join(source, CONFIG_FILENAME)

    data = {}
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        logger.debug("Loaded config from %s", path)
    else:
        logger.debug("No config file at %s, using defaults", path)

    # Jekyll keeps the default layout under defaults[].values.layout
    if "default_layout" not in data:
        for entry in data.get("defaults") or []:
            if isinstance(entry, dict) and (entry.get("values") or {}).get("layout"):
                data["default_layout"] = entry["values"]["layout"]
                break

    known = {f.name for f in fields(SiteConfig)}
    kwargs = {k: v for k, v in data.items() if k in known and v is not None}
    for key, value in kwargs.items():
        if not isinstance(value, str):
            raise ConfigError(f"{path}: '{key}' must be a string, got {type(value).__name__}")

    if os.environ.get(ENV_DESTINATION):
        kwargs["destination"] = os.environ[ENV_DESTINATION]
    kwargs["source"] = source
    return SiteConfig(**kwargs)
