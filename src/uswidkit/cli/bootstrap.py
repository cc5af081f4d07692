"""CLI bootstrap helpers: logging, config, and collection assembly."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from uswidkit.collection import IdentityCollection, ParentPolicy
from uswidkit.config import ConfigError, UswidConfig, default_config_file, load_config
from uswidkit.formats import FileFormat

_LOGGING_CONFIGURED = False


def configure_logging(*, debug: bool = False) -> None:
    """Configure Rich-backed logging once for CLI commands.

    Args:
        debug: Whether to log at DEBUG instead of INFO.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    level = logging.DEBUG if debug else logging.INFO
    if _LOGGING_CONFIGURED:
        logging.getLogger().setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True), show_path=False, rich_tracebacks=True
            )
        ],
    )
    _LOGGING_CONFIGURED = True


def load_effective_config(config_file: Path | None, *, console: Console) -> UswidConfig:
    """Load config from an explicit path or the workspace default.

    Invalid config falls back to defaults with a visible warning.

    Args:
        config_file: Optional config path override.
        console: Rich console for config warnings.

    Returns:
        Effective configuration.
    """
    effective_config_file = config_file or default_config_file()
    try:
        return load_config(effective_config_file)
    except ConfigError as exc:
        console.print(
            f"[yellow]Config at {escape(str(effective_config_file))} is invalid; "
            "falling back to defaults.[/yellow]"
        )
        console.print(f"[yellow]Reason: {escape(str(exc))}[/yellow]")
        return UswidConfig()


def resolve_parent_policy(
    *,
    parent_file: Path | None,
    parent_policy: ParentPolicy | None,
) -> ParentPolicy | None:
    """Combine ``--parent-file`` and ``--parent-policy`` into one policy.

    Args:
        parent_file: Separate single-identity parent source, if any.
        parent_policy: Explicit policy, if any.

    Returns:
        Policy to apply, or None for no link injection.

    Raises:
        ValueError: If the two options contradict each other.
    """
    if parent_file is not None:
        if parent_policy not in (None, ParentPolicy.SEPARATE_SOURCE):
            raise ValueError(
                f"--parent-file cannot be combined with policy {parent_policy}"
            )
        return ParentPolicy.SEPARATE_SOURCE
    if parent_policy is ParentPolicy.SEPARATE_SOURCE:
        raise ValueError("policy separate-source requires --parent-file")
    return parent_policy


def build_collection(
    *,
    input_files: list[Path],
    config: UswidConfig,
    input_format: FileFormat | None = None,
    parent_file: Path | None = None,
    parent_policy: ParentPolicy | None = None,
) -> IdentityCollection:
    """Import every input and apply the requested parent-link policy.

    Args:
        input_files: Input paths in import order.
        config: Effective configuration.
        input_format: Explicit format for all inputs.
        parent_file: Separate single-identity parent source.
        parent_policy: Link injection policy.

    Returns:
        Populated collection.
    """
    policy = resolve_parent_policy(parent_file=parent_file, parent_policy=parent_policy)
    collection = IdentityCollection(config)
    for path in input_files:
        collection.import_file(path, input_format)
    if policy is None:
        return collection
    parent: IdentityCollection | None = None
    if parent_file is not None:
        parent = IdentityCollection(config)
        parent.import_file(parent_file, input_format)
    collection.inject_parent_links(policy, parent)
    return collection
