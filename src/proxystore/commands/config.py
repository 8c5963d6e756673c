"""Config commands -- view and modify global configuration.

Provides the ``proxystore config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~proxystore.models.GlobalConfig`).
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from proxystore.exit_codes import EXIT_INVALID_USAGE
from proxystore.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Prints the config directory path followed by the configuration after
    CLI flags and environment variables have been applied.

    Example::

        proxystore config show
        proxystore --json config show
    """
    from proxystore.config import get_config_dir, resolve_config

    obj = ctx.obj or {}
    config = resolve_config(
        cli_cache_path=obj.get("cache_path"),
        cli_backend=obj.get("backend"),
    )
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.page_size')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (int or str) and the updated config is validated
    before saving.

    Example::

        proxystore config set cache.path /var/cache/proxy/storage
        proxystore config set cache.backend diskcache
        proxystore config set cache.page_size 50
    """
    from proxystore.config import load_global_config, save_global_config
    from proxystore.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    if isinstance(current, int) and not isinstance(current, bool):
        try:
            coerced: object = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults, asking first unless ``--force`` is given."""
    from proxystore.config import save_global_config
    from proxystore.models import GlobalConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
