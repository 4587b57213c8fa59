"""Locate a driver executable and build a service from settings."""

from __future__ import annotations

import dataclasses
import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from driverbridge.exceptions import DriverExecutableNotFoundError
from driverbridge.service.config import ServiceConfig
from driverbridge.service.lifecycle import DriverService

logger = logging.getLogger(__name__)


def find_driver_executable(
    file_name: str,
    download_url: str,
    search_dirs: Iterable[str | Path] | None = None,
) -> str:
    """Return the directory containing *file_name*.

    Looks in *search_dirs* first, then the current working directory, then
    every directory on ``PATH``.

    Raises:
        DriverExecutableNotFoundError: If the executable is found nowhere.
    """
    candidates = [Path(d) for d in (search_dirs or [])]
    candidates.append(Path.cwd())
    for directory in candidates:
        path = directory / file_name
        if path.is_file() and os.access(path, os.X_OK):
            logger.debug("Found %s in %s", file_name, directory)
            return str(directory.resolve())

    found = shutil.which(file_name)
    if found:
        logger.debug("Found %s on PATH at %s", file_name, found)
        return str(Path(found).resolve().parent)

    raise DriverExecutableNotFoundError(file_name, download_url)


def create_default_service(
    driver_path: str | None = None,
    file_name: str | None = None,
) -> DriverService:
    """Create a ``DriverService`` configured from ``driverbridge.settings``.

    Args:
        driver_path: Directory containing the driver. When omitted, the
            configured ``driver.executable_path`` is used, and failing that
            the executable is searched for on disk.
        file_name: Override the configured executable file name.
    """
    from driverbridge.settings import get_settings

    config = ServiceConfig.from_settings(get_settings())
    if file_name:
        config = dataclasses.replace(config, executable_file_name=file_name)

    directory = driver_path or config.executable_path
    if not directory:
        directory = find_driver_executable(config.executable_file_name, config.download_url)
    config = dataclasses.replace(config, executable_path=directory)

    logger.info("Default driver service: %s on port %s", config.executable, config.port or "auto")
    return DriverService(config)
