import sys
from pathlib import Path

import click
import toml
from loguru import logger

from storyfeed.config import ALLOWED_THEMES, CONFIG_FILE_PATH, FeedConfig, load_config, merge_config_with_cli_args


def configure_logging(log_file: str | None = None, level: str = "INFO") -> None:
    """Route loguru output away from the terminal the UI is drawn on."""
    logger.remove()
    if log_file:
        logger.add(log_file, level=level, rotation="10 MB", retention=3, enqueue=True)


@click.group(invoke_without_command=True)
@click.pass_context
@click.option(
    "--endpoint-url",
    type=str,
    help="GraphQL endpoint of the content API",
    default=None,
    envvar="STORYFEED_ENDPOINT_URL",
)
@click.option(
    "--category",
    "category_id",
    type=str,
    help="Base category ID the feed is opened for",
    default=None,
)
@click.option(
    "--page-size",
    type=click.IntRange(min=1),
    help="Number of posts requested per page",
    default=None,
)
@click.option(
    "--theme",
    type=click.Choice(ALLOWED_THEMES, case_sensitive=False),
    help="Theme to use for the UI",
    default=None,
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True, path_type=str),
    help="Write logs to this file",
    default=None,
)
@click.option(
    "--log-level",
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Minimum level written to the log file",
    default=None,
)
@click.option(
    "--config",
    type=click.Path(exists=True, readable=True, path_type=str),
    help="Path to configuration file (default: ~/.storyfeed.config)",
    default=None,
)
def cli(
    ctx,
    endpoint_url: str | None = None,
    category_id: str | None = None,
    page_size: int | None = None,
    theme: str | None = None,
    log_file: str | None = None,
    log_level: str | None = None,
    config: str | None = None,
):
    """Story Feed - browse the latest stories from the terminal."""
    if ctx.invoked_subcommand is None:
        # Run the main app
        main(endpoint_url, category_id, page_size, theme, log_file, log_level, config)


@cli.command()
@click.option(
    "--config",
    type=click.Path(path_type=str),
    help="Path to configuration file (default: ~/.storyfeed.config)",
    default=None,
)
def configure(config: str | None = None):
    """Interactive configuration setup for storyfeed"""
    # Determine config file path
    config_path = CONFIG_FILE_PATH
    if config:
        config_path = Path(config)

    click.echo("Story Feed Configuration Setup")
    click.echo("=" * 30)
    click.echo("Leave fields empty to use defaults or skip optional settings.")
    click.echo()

    # Load existing config if it exists
    existing_config = {}
    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                existing_config = toml.load(f)
            click.echo(f"Found existing configuration at {config_path}")
            click.echo()
        except (OSError, toml.TomlDecodeError) as e:
            click.echo(f"Ignoring unreadable configuration at {config_path}: {e}")

    new_config = {}
    defaults = FeedConfig()

    # Backend Configuration
    click.echo("Backend Configuration:")
    click.echo("-" * 22)

    current = existing_config.get("endpoint_url", defaults.endpoint_url)
    new_config["endpoint_url"] = click.prompt("GraphQL endpoint URL", default=current, type=str).strip()

    current = existing_config.get("category_id", "")
    category_id = click.prompt(
        "Base category ID (empty for all categories)", default=current, show_default=bool(current), type=str
    ).strip()
    if category_id:
        new_config["category_id"] = category_id

    new_config["page_size"] = click.prompt(
        "Posts per page",
        default=existing_config.get("page_size", defaults.page_size),
        type=click.IntRange(min=1),
    )

    # Theme Configuration
    click.echo()
    click.echo("Theme Configuration:")
    click.echo("-" * 20)

    current_theme = existing_config.get("theme", defaults.theme)
    click.echo("Available themes:")
    for i, theme in enumerate(ALLOWED_THEMES, 1):
        marker = " (current)" if theme == current_theme else ""
        click.echo(f"  {i}. {theme}{marker}")

    theme_choice = click.prompt(
        f"Select theme (1-{len(ALLOWED_THEMES)})",
        default=ALLOWED_THEMES.index(current_theme) + 1 if current_theme in ALLOWED_THEMES else 1,
        type=click.IntRange(1, len(ALLOWED_THEMES)),
    )
    new_config["theme"] = ALLOWED_THEMES[theme_choice - 1]

    # Keep settings this wizard does not ask about
    for key, value in existing_config.items():
        new_config.setdefault(key, value)

    # Validate configuration
    click.echo()
    try:
        FeedConfig(**{key: value for key, value in new_config.items() if key in FeedConfig.__dataclass_fields__})
        click.echo("✓ Configuration validated successfully!")
    except (TypeError, ValueError) as e:
        click.echo(f"✗ Configuration validation failed: {e}")
        if not click.confirm("Save configuration anyway?"):
            click.echo("Configuration cancelled.")
            return

    # Save configuration
    click.echo()
    try:
        with open(config_path, "w") as f:
            toml.dump(new_config, f)
        click.echo(f"✓ Configuration saved to {config_path}")
    except OSError as e:
        click.echo(f"✗ Failed to save configuration: {e}")


def main(
    endpoint_url: str | None = None,
    category_id: str | None = None,
    page_size: int | None = None,
    theme: str | None = None,
    log_file: str | None = None,
    log_level: str | None = None,
    config: str | None = None,
):
    """Story Feed - browse the latest stories from the terminal."""
    try:
        # Load configuration from file
        config_obj = load_config(config)

        # Merge with CLI arguments (CLI takes priority)
        config_obj = merge_config_with_cli_args(
            config_obj,
            endpoint_url=endpoint_url,
            category_id=category_id,
            page_size=page_size,
            theme=theme,
            log_file=log_file,
            log_level=log_level,
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    configure_logging(config_obj.log_file, config_obj.log_level)
    logger.info(f"Starting storyfeed against {config_obj.endpoint_url}")

    # Imported here so `storyfeed configure` does not load the UI stack
    from storyfeed.ui.app import FeedBrowser

    app = FeedBrowser(config_obj)
    app.run()
    return app.return_code


if __name__ == "__main__":
    sys.exit(cli())
