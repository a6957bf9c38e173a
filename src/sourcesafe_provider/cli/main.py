"""
CLI main execution functions.

This module contains the Click command group exposing the SourceSafe provider
operations from the command line.
"""

import sys
from functools import update_wrapper
from typing import Iterator, Optional

import click

from .. import __version__
from ..shared.logging import setup_logging
from ..vcs import (
    DirectoryTree,
    ProcessRunner,
    SourceSafeConfig,
    SourceSafeConfigManager,
    SourceSafeError,
    SourceSafeProvider,
)
from .validators import validate_db_file, validate_non_empty_string, validate_timeout


def load_config(env_file: Optional[str], config_file: Optional[str]) -> SourceSafeConfig:
    """Load configuration from the env file, else the saved config, else the environment."""
    if env_file:
        return SourceSafeConfig.from_env_file(env_file)

    saved = SourceSafeConfigManager(config_file).load_config()
    if saved:
        return saved

    return SourceSafeConfig.from_environment()


def render_tree(tree: DirectoryTree, show_files: bool = True) -> Iterator[str]:
    """Yield one indented line per directory (and file) of a tree."""
    stack = [(tree, 0)]
    while stack:
        directory, depth = stack.pop()
        indent = "  " * depth
        yield f"{indent}{directory.name}/  ({directory.path or '<root>'})"
        if show_files:
            for entry in directory.files:
                yield f"{indent}  {entry.display_name}"
        stack.extend((child, depth + 1) for child in reversed(directory.subdirectories))


def provider_command(f):
    """Pass a configured provider to the command and report SourceSafe errors."""

    @click.pass_context
    def new_func(ctx, *args, **kwargs):
        try:
            config = load_config(ctx.obj["env_file"], ctx.obj["config_file"])
            config.validate()
        except (OSError, ValueError) as e:
            click.echo(f"❌ Invalid configuration: {e}", err=True)
            sys.exit(1)

        provider = SourceSafeProvider(config)
        try:
            return ctx.invoke(f, provider, *args, **kwargs)
        except SourceSafeError as e:
            click.echo(f"❌ {e}", err=True)
            sys.exit(1)

    return update_wrapper(new_func, f)


@click.group()
@click.version_option(version=__version__, prog_name='sourcesafe-provider')
@click.option(
    '--env-file',
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=str),
    help='Path to environment file containing SS_DB_FILE_PATH, SS_USERNAME, SS_PASSWORD, SS_CLIENT_EXE_PATH, SS_TIMEOUT'
)
@click.option(
    '--config-file',
    type=click.Path(dir_okay=False, path_type=str),
    help='Saved configuration file (default: ~/.sourcesafe_provider.json)'
)
@click.option(
    '--log-level', '-l',
    type=click.Choice(['ERROR', 'WARNING', 'INFO', 'DEBUG'], case_sensitive=False),
    default='ERROR',
    help='Set logging level (default: ERROR)'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging (overrides --log-level)'
)
@click.pass_context
def cli(ctx, env_file, config_file, log_level, verbose):
    """
    SourceSafe Provider - run Visual SourceSafe operations through ss.exe.

    Settings come from --env-file, else from the configuration saved with
    'config', else from SS_* environment variables.

    Examples:

    \b
    sourcesafe-provider config --db-file \\\\server\\vss\\srcsafe.ini --username build
    sourcesafe-provider dir '$/ProjA'
    sourcesafe-provider get-latest '$/ProjA' C:\\build\\ProjA
    sourcesafe-provider --env-file=vss.env label Release-1.0 '$/ProjA'
    """
    setup_logging(verbose=verbose, log_level=log_level)
    ctx.obj = {"env_file": env_file, "config_file": config_file}


@cli.command()
@click.pass_context
def available(ctx):
    """Check that the ss.exe client can be found."""
    try:
        settings = load_config(ctx.obj["env_file"], ctx.obj["config_file"])
    except (OSError, ValueError) as e:
        click.echo(f"❌ Invalid configuration: {e}", err=True)
        sys.exit(1)

    client_path = ProcessRunner(settings.client_exe_path).find_client_executable()
    if not client_path:
        click.echo("❌ SourceSafe client (ss.exe) not found.", err=True)
        sys.exit(1)
    click.echo(f"✅ SourceSafe client found: {client_path}")


@cli.command()
@provider_command
def validate(provider):
    """Validate the connection to the database."""
    provider.validate_connection()
    click.echo(f"✅ Connected to {provider}")


@cli.command(name='dir')
@click.argument('path', required=False, default='')
@click.option('--files/--no-files', default=True, help='Show files under each project')
@provider_command
def dir_command(provider, path, files):
    """List a project recursively."""
    tree = provider.get_directory_entry_info(path or provider.config.root_path or '')
    for line in render_tree(tree, show_files=files):
        click.echo(line)


@cli.command()
@click.argument('path', callback=validate_non_empty_string)
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), help='Write to file instead of stdout')
@provider_command
def cat(provider, path, output):
    """Print the latest version of a file."""
    contents = provider.get_file_contents(path)
    if output:
        with open(output, 'wb') as f:
            f.write(contents)
        click.echo(f"✅ Wrote {len(contents)} bytes to {output}")
    else:
        click.get_binary_stream('stdout').write(contents)


@cli.command(name='get-latest')
@click.argument('source')
@click.argument('target')
@provider_command
def get_latest(provider, source, target):
    """Get the latest version of SOURCE into the local TARGET directory."""
    provider.get_latest(source, target)
    click.echo(f"✅ Retrieved {source} into {target}")


@cli.command()
@click.argument('label', callback=validate_non_empty_string)
@click.argument('path')
@provider_command
def label(provider, label, path):
    """Apply LABEL to PATH."""
    provider.apply_label(label, path)
    click.echo(f"✅ Labeled {path} as {label}")


@cli.command(name='get-labeled')
@click.argument('label', callback=validate_non_empty_string)
@click.argument('source')
@click.argument('target')
@provider_command
def get_labeled(provider, label, source, target):
    """Get the version of SOURCE labeled LABEL into the local TARGET directory."""
    provider.get_labeled(label, source, target)
    click.echo(f"✅ Retrieved {source} at {label} into {target}")


@cli.command()
@click.option('--db-file', required=True, callback=validate_db_file, help='Path to the srcsafe.ini database file')
@click.option('--exe', 'client_exe_path', type=click.Path(dir_okay=False), help='Location of ss.exe (searched for when omitted)')
@click.option('--username', help='SourceSafe username')
@click.option('--password', help='SourceSafe password (prompted when a username is given)')
@click.option('--timeout', type=int, default=30, show_default=True, callback=validate_timeout, help='Seconds before ss.exe is killed')
@click.option('--root-path', help="Default project path, e.g. '$/ProjA'")
@click.pass_context
def config(ctx, db_file, client_exe_path, username, password, timeout, root_path):
    """Save provider settings; the password goes to the system keyring."""
    if username and password is None:
        password = click.prompt('Password', hide_input=True, default='', show_default=False)

    settings = SourceSafeConfig(
        db_file_path=db_file,
        client_exe_path=client_exe_path,
        username=username,
        password=password or None,
        timeout=timeout,
        root_path=root_path,
    )

    manager = SourceSafeConfigManager(ctx.obj["config_file"])
    if not manager.save_config(settings):
        click.echo("❌ Could not save configuration.", err=True)
        sys.exit(1)

    click.echo("✅ SourceSafe configuration saved successfully!")
    click.echo(f"   Database: {settings.db_file_path}")
    click.echo(f"   Client: {settings.client_exe_path or 'Auto-detect'}")
    click.echo(f"   Username: {settings.username or 'Not set'}")
    click.echo(f"   Timeout: {settings.timeout} seconds")
    click.echo(f"   Config File: {manager.config_file}")


def main():
    """Main CLI entry point."""
    return cli()


if __name__ == '__main__':
    sys.exit(main())
