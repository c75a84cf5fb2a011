"""Writing fetched templates into a workspace's steering directory."""

from __future__ import annotations

import errno
from collections.abc import Callable
from pathlib import Path

import structlog

from steeringloader.errors import ErrorCode, SteeringError
from steeringloader.models.templates import LoadResult

log = structlog.get_logger()

DEFAULT_STEERING_DIR = ".kiro/steering"

ConfirmOverwrite = Callable[[str], bool]

_PERMISSION_ERRNOS = frozenset({errno.EACCES, errno.EPERM})


def _translate_os_error(exc: OSError, action: str) -> SteeringError | None:
    if isinstance(exc, PermissionError) or exc.errno in _PERMISSION_ERRNOS:
        return SteeringError(
            ErrorCode.PERMISSION_DENIED,
            f"Permission denied {action}",
            user_message="Unable to write template file. Please check file permissions.",
            details={"error": str(exc)},
        )
    if exc.errno == errno.ENOSPC:
        return SteeringError(
            ErrorCode.DISK_FULL,
            "Disk full",
            user_message="Not enough disk space to write template file.",
            details={"error": str(exc)},
        )
    return None


def ensure_steering_directory(
    workspace_path: str | Path, steering_dir: str = DEFAULT_STEERING_DIR
) -> Path:
    target = Path(workspace_path) / steering_dir
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        translated = _translate_os_error(exc, "creating directory")
        if translated is not None:
            raise translated from exc
        raise
    return target


def write_template(
    content: str,
    filename: str,
    workspace_path: str | Path,
    *,
    steering_dir: str = DEFAULT_STEERING_DIR,
    overwrite: bool = False,
    confirm_overwrite: ConfirmOverwrite | None = None,
) -> LoadResult:
    """Write ``content`` to ``<workspace>/<steering_dir>/<filename>``.

    An existing file is replaced when ``overwrite`` is set or
    ``confirm_overwrite(filename)`` returns True. Declining returns an
    unsuccessful ``LoadResult``; with neither option given the write fails
    with ``FILE_EXISTS``.
    """
    if Path(filename).name != filename:
        raise SteeringError(
            ErrorCode.INVALID_CONFIG,
            "Template filename must not contain path separators",
            details={"filename": filename},
        )

    target = ensure_steering_directory(workspace_path, steering_dir) / filename

    if target.exists() and not overwrite:
        if confirm_overwrite is None:
            raise SteeringError(
                ErrorCode.FILE_EXISTS,
                f"File already exists: {target}",
                user_message=f'File "{filename}" already exists.',
                details={"filepath": str(target)},
            )
        if not confirm_overwrite(filename):
            return LoadResult(success=False, error="User cancelled overwrite")

    try:
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        translated = _translate_os_error(exc, "writing template file")
        if translated is not None:
            raise translated from exc
        raise

    log.info("template_written", filepath=str(target), size=len(content))
    return LoadResult(success=True, filepath=str(target))
