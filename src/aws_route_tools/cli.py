"""AWS Route Tools CLI"""

from typing import List, NoReturn, Optional

import typer
from rich.console import Console

from .config import (
    RuntimeConfig,
    load_retry_policy,
    parse_duration,
    save_retry_policy,
)
from .core import RouteRenderer, get_logger, run_with_spinner, setup_logging
from .core.errors import (
    ForeignEntryConflict,
    InvalidImportIdentity,
    RouteError,
    RouteValidationError,
)
from .models import AddressFamily, Destination
from .modules import (
    RouteReconciler,
    RouteTableClient,
    format_route_id,
    normalize,
)

app = typer.Typer(
    name="aws-route",
    help="Declarative management of single VPC route table entries",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Show or change retry settings", no_args_is_help=True)
app.add_typer(config_app, name="config")

console = Console()
logger = get_logger("cli")

TARGET_HELP = (
    "Route target as KIND=ID, e.g. gateway_id=igw-123 or nat_gateway_id=nat-123"
)


@app.callback()
def _global(
    profile: Optional[str] = typer.Option(None, "--profile", "-p"),
    region: Optional[str] = typer.Option(None, "--region", "-r"),
    output_format: str = typer.Option("table", "--format", help="table|json|yaml"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log to file"),
):
    RuntimeConfig.set_profile(profile)
    RuntimeConfig.set_region(region)
    try:
        RuntimeConfig.set_output_format(output_format)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--format")
    RuntimeConfig.set_debug(debug)
    setup_logging(debug=debug, log_file=log_file)


def _renderer() -> RouteRenderer:
    return RouteRenderer(console)


def _reconciler(timeout: Optional[str] = None, on_status=None) -> RouteReconciler:
    policy = load_retry_policy()
    if timeout:
        policy = policy.model_copy(update={"poll_timeout": parse_duration(timeout)})
    table = RouteTableClient(
        profile=RuntimeConfig.get_profile(), region=RuntimeConfig.get_region()
    )
    return RouteReconciler(table, policy, on_status=on_status)


def _intent(
    route_table_id: str,
    cidr: Optional[str],
    ipv6_cidr: Optional[str],
    targets: List[str],
) -> dict:
    intent = {
        "route_table_id": route_table_id,
        "destination_cidr_block": cidr,
        "destination_ipv6_cidr_block": ipv6_cidr,
    }
    for item in targets:
        kind, sep, target_id = item.partition("=")
        if not sep:
            raise RouteValidationError(f"Invalid target {item!r}, expected KIND=ID")
        kind = kind.strip().replace("-", "_")
        if kind in intent and intent[kind]:
            raise RouteValidationError(f"Target {kind} given more than once")
        intent[kind] = target_id
    return intent


def _fail(e: RouteError) -> NoReturn:
    logger.debug("Command failed", exc_info=e)
    r = _renderer()
    r.error(f"{type(e).__name__}: {e}")
    if e.observed is not None:
        r.route(e.observed.attributes(), "table")
    if e.retryable:
        r.warning("This error is retryable; run the command again")
    structural = (RouteValidationError, ForeignEntryConflict, InvalidImportIdentity)
    raise typer.Exit(code=2 if isinstance(e, structural) else 1)


@app.command()
def apply(
    route_table_id: str = typer.Argument(..., help="Route table ID"),
    cidr: Optional[str] = typer.Option(None, "--cidr", help="IPv4 destination"),
    ipv6_cidr: Optional[str] = typer.Option(None, "--ipv6-cidr", help="IPv6 destination"),
    target: List[str] = typer.Option([], "--target", "-t", help=TARGET_HELP),
    timeout: Optional[str] = typer.Option(
        None, "--timeout", help="Propagation wait, e.g. 90s or 5m"
    ),
):
    """Create the route, or replace its target if it changed"""
    fmt = RuntimeConfig.get_output_format()
    try:
        spec = normalize(_intent(route_table_id, cidr, ipv6_cidr, target))

        def run(status):
            return _reconciler(timeout, on_status=status).apply(spec)

        result = run_with_spinner(run, f"Applying {spec.route_id}", console=console)
    except RouteError as e:
        _fail(e)

    attrs = result.route.attributes()
    if _renderer().render({"action": result.action.value, "route": attrs}, fmt):
        return
    _renderer().action(result.action.value, spec.route_id)
    _renderer().route(attrs)


@app.command()
def plan(
    route_table_id: str = typer.Argument(..., help="Route table ID"),
    cidr: Optional[str] = typer.Option(None, "--cidr", help="IPv4 destination"),
    ipv6_cidr: Optional[str] = typer.Option(None, "--ipv6-cidr", help="IPv6 destination"),
    target: List[str] = typer.Option([], "--target", "-t", help=TARGET_HELP),
):
    """Show what apply would do, without changing anything"""
    fmt = RuntimeConfig.get_output_format()
    try:
        spec = normalize(_intent(route_table_id, cidr, ipv6_cidr, target))
        reconciler = _reconciler()
        # one read, so the action and the diff describe the same snapshot
        observed = reconciler.lookup(spec.route_table_id, spec.destination)
        action = reconciler.decide(spec, observed)
    except RouteError as e:
        _fail(e)

    changes = reconciler.diff(spec, observed)
    data = {
        "action": action.value,
        "changes": {k: {"desired": w, "observed": h} for k, (w, h) in changes.items()},
    }
    if _renderer().render(data, fmt):
        return
    _renderer().action(action.value, spec.route_id)
    _renderer().diff(changes, spec.route_id)


@app.command()
def delete(
    route_table_id: str = typer.Argument(..., help="Route table ID"),
    destination: str = typer.Argument(..., help="IPv4 or IPv6 CIDR"),
):
    """Delete the route; succeeds if it is already gone"""
    fmt = RuntimeConfig.get_output_format()
    try:
        dest = Destination.parse(destination)
    except ValueError as e:
        _renderer().error(f"Invalid destination {destination!r}: {e}")
        raise typer.Exit(code=2)
    route_id = format_route_id(route_table_id, dest)
    try:
        result = run_with_spinner(
            lambda status: _reconciler(on_status=status).delete(route_table_id, dest),
            f"Deleting {route_id}",
            console=console,
        )
    except RouteError as e:
        _fail(e)

    if _renderer().render({"action": result.action.value, "route_id": route_id}, fmt):
        return
    _renderer().action(result.action.value, route_id)


@app.command()
def show(
    route_table_id: str = typer.Argument(..., help="Route table ID"),
    destination: str = typer.Argument(..., help="IPv4 or IPv6 CIDR"),
):
    """Show the current route entry for a destination"""
    fmt = RuntimeConfig.get_output_format()
    try:
        dest = Destination.parse(destination)
    except ValueError as e:
        _renderer().error(f"Invalid destination {destination!r}: {e}")
        raise typer.Exit(code=2)
    try:
        observed = _reconciler().describe(route_table_id, dest)
    except RouteError as e:
        _fail(e)

    if observed is None:
        _renderer().warning(f"Route {format_route_id(route_table_id, dest)} not found")
        raise typer.Exit(code=1)
    _renderer().route(observed.attributes(), fmt)


@app.command("import")
def import_route(
    route_id: str = typer.Argument(..., help="ROUTETABLEID_DESTINATION"),
):
    """Resolve an existing route into apply arguments"""
    fmt = RuntimeConfig.get_output_format()
    try:
        spec = _reconciler().import_route(route_id)
    except RouteError as e:
        _fail(e)

    data = {
        "route_table_id": spec.route_table_id,
        spec.destination.kind.value: spec.destination.value,
        spec.target.kind.value: spec.target.id,
    }
    if _renderer().render(data, fmt):
        return
    flag = "--ipv6-cidr" if spec.destination.family is AddressFamily.IPV6 else "--cidr"
    _renderer().panel(
        [f"[bold]{k}:[/] {v}" for k, v in data.items()]
        + [
            "",
            f"aws-route apply {spec.route_table_id} {flag} {spec.destination.value} "
            f"--target {spec.target.kind.value}={spec.target.id}",
        ],
        title=f"Imported {spec.route_id}",
    )


@config_app.command("show")
def config_show():
    """Show retry settings"""
    policy = load_retry_policy()
    if _renderer().render(policy.model_dump(), RuntimeConfig.get_output_format()):
        return
    _renderer().panel(
        [f"[bold]{k}:[/] {v}" for k, v in policy.model_dump().items()],
        title="Retry settings",
    )


@config_app.command("set-timeout")
def config_set_timeout(value: str = typer.Argument(..., help="e.g. 90s, 5m")):
    """Set how long to wait for writes to become visible"""
    try:
        seconds = parse_duration(value)
    except ValueError as e:
        _renderer().error(str(e))
        raise typer.Exit(code=2)
    save_retry_policy(load_retry_policy().model_copy(update={"poll_timeout": seconds}))
    _renderer().status(f"Propagation timeout set to {seconds:.0f}s")


@config_app.command("set-attempts")
def config_set_attempts(value: int = typer.Argument(..., min=1, help="Attempts per call")):
    """Set how many times a remote call is attempted on transient errors"""
    save_retry_policy(load_retry_policy().model_copy(update={"max_attempts": value}))
    _renderer().status(f"Remote calls will be attempted up to {value} time(s)")


if __name__ == "__main__":
    app()
