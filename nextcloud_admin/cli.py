"""
Nextcloud Admin CLI - command line front end for the OCS provisioning API.

This module provides the main CLI entry point and commands for:
- User provisioning (list, add, delete, enable, disable, welcome email)
- Group membership
- Group management
"""

import sys
import logging
from typing import Callable, List, Optional, Tuple

import click

from . import __version__
from .api import NextcloudAPIClient
from .config import (
    NextcloudConfig,
    ENV_SERVER_URL,
    ENV_USERNAME,
    ENV_PASSWORD,
)
from .exceptions import NextcloudError
from .models import OCS, UserRequest
from .utils import (
    setup_logging,
    print_success,
    print_error,
    print_info,
    print_json,
    print_list,
    print_table,
    confirm_action,
    truncate_string,
    OutputFormat,
)

logger = logging.getLogger(__name__)


# ============================================================================
# CLI Context and Common Options
# ============================================================================

class NextcloudContext:
    """CLI context object for sharing state between commands."""

    def __init__(self):
        self.server_url: Optional[str] = None
        self.username: Optional[str] = None
        self.password: Optional[str] = None

    def get_config(self) -> NextcloudConfig:
        """Build the client configuration, prompting for a missing password."""
        if not self.server_url or not self.username:
            print_error(
                "Nextcloud server is not configured.",
                f"Pass --server and --username or set {ENV_SERVER_URL} and {ENV_USERNAME}."
            )
            sys.exit(1)

        if not self.password:
            self.password = click.prompt("Password", hide_input=True)

        return NextcloudConfig(
            username=self.username,
            password=self.password,
            server_url=self.server_url,
        )


pass_context = click.make_pass_decorator(NextcloudContext, ensure=True)


def common_options(f):
    """Common options for all commands."""
    f = click.option(
        '-v', '--verbose',
        is_flag=True,
        help='Enable verbose output'
    )(f)
    f = click.option(
        '-q', '--quiet',
        is_flag=True,
        help='Suppress non-essential output'
    )(f)
    f = click.option(
        '-f', '--format',
        'output_format',
        type=click.Choice(['table', 'json']),
        default='table',
        help='Output format'
    )(f)
    return f


def run_operation(ctx: NextcloudContext, operation: Callable[[NextcloudAPIClient], OCS]) -> OCS:
    """
    Run one client operation and interpret the envelope status.

    Exits with status 1 on client errors and on envelopes the server marked
    as failed.
    """
    config = ctx.get_config()

    try:
        with NextcloudAPIClient(config) as client:
            ocs = operation(client)
    except NextcloudError as e:
        print_error(str(e))
        sys.exit(1)

    if not ocs.ok:
        logger.debug(f"Server status={ocs.meta.status!r} statuscode={ocs.meta.statuscode}")
        print_error(
            f"Request failed with status code {ocs.meta.statuscode}",
            ocs.meta.message
        )
        sys.exit(1)

    return ocs


def _format_bool(value: bool) -> str:
    return click.style("Yes", fg="green") if value else click.style("No", fg="red")


def _format_title(title: str) -> str:
    return click.style(f"\n{title}\n", bold=True)


def _report(output_format: str, message: str, ocs: OCS) -> None:
    if output_format == OutputFormat.JSON.value:
        print_json({'success': True, 'message': message, 'statuscode': ocs.meta.statuscode})
    else:
        print_success(message)


# ============================================================================
# Main CLI Group
# ============================================================================

@click.group()
@click.version_option(version=__version__, prog_name='ncadmin')
@click.option('--server', '-s', envvar=ENV_SERVER_URL, help='Nextcloud server URL')
@click.option('--username', '-u', envvar=ENV_USERNAME, help='Admin username')
@click.option(
    '--password', '-p',
    envvar=ENV_PASSWORD,
    help='Admin password or app password (will prompt if not provided)'
)
@click.pass_context
def cli(ctx, server: Optional[str], username: Optional[str], password: Optional[str]):
    """
    Nextcloud Admin - user and group provisioning tool.

    \b
    Examples:
      ncadmin -s https://cloud.example.com -u admin users list
      ncadmin users add-simple jane@example.com
      ncadmin users add-to-group jane staff

    \b
    Environment Variables:
      NEXTCLOUD_URL       - Server URL
      NEXTCLOUD_USERNAME  - Admin username
      NEXTCLOUD_PASSWORD  - Admin password or app password
    """
    ctx.ensure_object(NextcloudContext)
    ctx.obj.server_url = server
    ctx.obj.username = username
    ctx.obj.password = password


# ============================================================================
# User Commands
# ============================================================================

@cli.group('users')
def users():
    """User provisioning commands."""
    pass


@users.command('list')
@common_options
@click.option('--search', '-s', help='Search string (lists all users when omitted)')
@pass_context
def user_list(
    ctx: NextcloudContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    search: Optional[str]
):
    """List or search users."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.list_users(search))
    user_ids = ocs.data.users

    if output_format == 'json':
        print_json(user_ids)
    elif not user_ids:
        click.echo("No users found.")
    else:
        print_list("Users", user_ids)


@users.command('get')
@common_options
@click.argument('user_id', type=str)
@pass_context
def user_get(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, user_id: str):
    """Show a user's profile and quota."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.get_user(user_id))
    data = ocs.data

    if output_format == 'json':
        print_json({
            'id': data.id,
            'displayname': data.displayname,
            'email': data.email,
            'enabled': data.enabled,
            'backend': data.backend,
            'lastLogin': data.last_login,
            'groups': data.groups,
            'quota': {
                'used': data.quota.used,
                'free': data.quota.free,
                'total': data.quota.total,
                'relative': data.quota.relative,
                'quota': data.quota.quota,
            },
        })
        return

    click.echo(_format_title(f"User: {data.id or user_id}"))
    click.echo(f"  Display Name: {truncate_string(data.displayname or 'N/A', 40)}")
    click.echo(f"  Email:        {data.email or 'N/A'}")
    click.echo(f"  Enabled:      {_format_bool(data.enabled)}")
    click.echo(f"  Backend:      {data.backend or 'N/A'}")
    click.echo(f"  Groups:       {', '.join(data.groups) if data.groups else 'None'}")
    click.echo(f"  Quota Used:   {data.quota.used} / {data.quota.total} ({data.quota.relative}%)")


@users.command('groups')
@common_options
@click.argument('user_id', type=str)
@pass_context
def user_groups(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, user_id: str):
    """List the groups a user belongs to."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.get_user_groups(user_id))

    if output_format == 'json':
        print_json(ocs.data.groups)
    else:
        print_list(f"Groups of {user_id}", ocs.data.groups)


@users.command('subadmins')
@common_options
@click.argument('user_id', type=str)
@pass_context
def user_subadmins(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, user_id: str):
    """List the groups a user administers."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.get_user_subadmin_groups(user_id))

    if output_format == 'json':
        print_json(ocs.data.elements)
    else:
        print_list(f"Subadmin groups of {user_id}", ocs.data.elements)


@users.command('add')
@common_options
@click.argument('user_id', type=str)
@click.option('--password', 'user_password', help='Initial password')
@click.option('--display-name', help='Display name')
@click.option('--email', '-e', help='Email address')
@click.option('--quota', help='Quota, e.g. "5 GB"')
@click.option('--language', help='Language code, e.g. "en"')
@click.option('--group', '-g', 'groups', multiple=True, help='Group to join (can specify multiple)')
@click.option('--subadmin', 'subadmin', multiple=True, help='Group to administer (can specify multiple)')
@pass_context
def user_add(
    ctx: NextcloudContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    user_id: str,
    user_password: Optional[str],
    display_name: Optional[str],
    email: Optional[str],
    quota: Optional[str],
    language: Optional[str],
    groups: Tuple[str, ...],
    subadmin: Tuple[str, ...]
):
    """Create a user."""
    setup_logging(verbose, quiet)

    user = UserRequest(
        user_id=user_id,
        password=user_password or "",
        display_name=display_name or "",
        email=email or "",
        quota=quota or "",
        language=language or "",
        groups=list(groups),
        subadmin=list(subadmin),
    )
    ocs = run_operation(ctx, lambda client: client.add_user(user))
    _report(output_format, f"User {user_id} created", ocs)


@users.command('add-simple')
@common_options
@click.argument('email', type=str)
@pass_context
def user_add_simple(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, email: str):
    """Create a user named after the part of EMAIL before the @."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.add_user_simple(email))
    _report(output_format, f"User {email.split('@')[0]} created", ocs)


@users.command('delete')
@common_options
@click.argument('user_id', type=str)
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation')
@pass_context
def user_delete(
    ctx: NextcloudContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    user_id: str,
    yes: bool
):
    """Delete a user."""
    setup_logging(verbose, quiet)

    if not yes and not confirm_action(f"Delete user {user_id}?"):
        print_info("Cancelled.")
        return

    ocs = run_operation(ctx, lambda client: client.delete_user(user_id))
    _report(output_format, f"User {user_id} deleted", ocs)


@users.command('add-to-group')
@common_options
@click.argument('user_id', type=str)
@click.argument('group_id', type=str)
@pass_context
def user_add_to_group(
    ctx: NextcloudContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    user_id: str,
    group_id: str
):
    """Add a user to a group."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.add_user_to_group(user_id, group_id))
    _report(output_format, f"User {user_id} added to {group_id}", ocs)


@users.command('remove-from-group')
@common_options
@click.argument('user_id', type=str)
@click.argument('group_id', type=str)
@pass_context
def user_remove_from_group(
    ctx: NextcloudContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    user_id: str,
    group_id: str
):
    """Remove a user from a group."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.remove_user_from_group(user_id, group_id))
    _report(output_format, f"User {user_id} removed from {group_id}", ocs)


@users.command('resend-welcome')
@common_options
@click.argument('user_id', type=str)
@pass_context
def user_resend_welcome(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, user_id: str):
    """Resend the welcome email for password setup."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.resend_welcome_email(user_id))
    _report(output_format, f"Welcome email sent to {user_id}", ocs)


@users.command('enable')
@common_options
@click.argument('user_id', type=str)
@pass_context
def user_enable(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, user_id: str):
    """Enable a user account."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.enable_user(user_id))
    _report(output_format, f"User {user_id} enabled", ocs)


@users.command('disable')
@common_options
@click.argument('user_id', type=str)
@pass_context
def user_disable(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, user_id: str):
    """Disable a user account."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.disable_user(user_id))
    _report(output_format, f"User {user_id} disabled", ocs)


# ============================================================================
# Group Commands
# ============================================================================

@cli.group('groups')
def groups():
    """Group management commands."""
    pass


@groups.command('list')
@common_options
@click.option('--search', '-s', help='Search string (lists all groups when omitted)')
@pass_context
def group_list(
    ctx: NextcloudContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    search: Optional[str]
):
    """List or search groups."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.list_groups(search))
    group_ids = ocs.data.groups

    if output_format == 'json':
        print_json(group_ids)
    elif not group_ids:
        click.echo("No groups found.")
    else:
        print_list("Groups", group_ids)


@groups.command('add')
@common_options
@click.argument('group_id', type=str)
@pass_context
def group_add(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, group_id: str):
    """Create a group."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.add_group(group_id))
    _report(output_format, f"Group {group_id} created", ocs)


@groups.command('delete')
@common_options
@click.argument('group_id', type=str)
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation')
@pass_context
def group_delete(
    ctx: NextcloudContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    group_id: str,
    yes: bool
):
    """Delete a group."""
    setup_logging(verbose, quiet)

    if not yes and not confirm_action(f"Delete group {group_id}?"):
        print_info("Cancelled.")
        return

    ocs = run_operation(ctx, lambda client: client.delete_group(group_id))
    _report(output_format, f"Group {group_id} deleted", ocs)


@groups.command('members')
@common_options
@click.argument('group_id', type=str)
@pass_context
def group_members(ctx: NextcloudContext, verbose: bool, quiet: bool, output_format: str, group_id: str):
    """List the members of a group."""
    setup_logging(verbose, quiet)

    ocs = run_operation(ctx, lambda client: client.get_group_members(group_id))
    members: List[str] = ocs.data.users

    if output_format == 'json':
        print_json(members)
    elif not members:
        click.echo(f"Group {group_id} has no members.")
    else:
        print_table(['#', 'User'], [[str(i), user] for i, user in enumerate(members, 1)])


# ============================================================================
# Entry Point
# ============================================================================

def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nAborted.")
        sys.exit(130)
    except Exception as e:
        logger.exception("Unexpected error")
        print_error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
