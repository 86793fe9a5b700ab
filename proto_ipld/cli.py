"""Command-line interface for the proto_ipld demonstration."""

# Standard
from functools import wraps
import sys

# Third Party
import click

# First Party
import alog

# Local
from . import demo, model
from .errors import ProtoIpldError

log = alog.use_channel("CLI")


def _exit_on_error(func):
    """Report any library or I/O failure and exit with a non-zero status"""

    @wraps(func)
    def _wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ProtoIpldError, OSError) as err:
            log.error("%s: %s", type(err).__name__, err)
            click.echo(f"Error: {err}", err=True)
            sys.exit(1)

    return _wrapper


@click.group()
@click.option(
    "--log-level", default="warning", envvar="LOG_LEVEL", show_default=True
)
@click.option("--log-filters", default="", envvar="LOG_FILTERS")
@click.option(
    "--log-json", is_flag=True, default=False, envvar="LOG_JSON", help="Log as JSON"
)
def cli(log_level: str, log_filters: str, log_json: bool) -> None:
    """IPLD schema and protobuf descriptor demonstration."""
    alog.configure(
        default_level=log_level,
        filters=log_filters,
        formatter="json" if log_json else "pretty",
    )


@cli.command()
@click.option(
    "--descriptor-set",
    "descriptor_set_path",
    default=model.DEFAULT_DESCRIPTOR_SET,
    envvar="PROTO_IPLD_DESCRIPTOR_SET",
    help="Binary FileDescriptorSet file",
)
@click.option(
    "--proto-file",
    default=model.PERSON_PROTO_FILE,
    envvar="PROTO_IPLD_PROTO_FILE",
    show_default=True,
    help="Path of the .proto file within the descriptor set",
)
@click.option(
    "--message",
    "message_name",
    default="Person",
    envvar="PROTO_IPLD_MESSAGE",
    show_default=True,
    help="Message to build dynamically",
)
@_exit_on_error
def run(descriptor_set_path: str, proto_file: str, message_name: str) -> None:
    """Run the demonstration and print the results."""
    demo.run(descriptor_set_path, proto_file, message_name, out=sys.stdout)


@cli.command("write-descriptor-set")
@click.argument("output")
@_exit_on_error
def write_descriptor_set(output: str) -> None:
    """Write the descriptor set for person.proto to OUTPUT."""
    model.write_descriptor_set(output)
    click.echo(f"Wrote descriptor set to {output}")
