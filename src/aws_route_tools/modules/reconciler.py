"""Route reconciler: one route entry inside a shared, externally mutable table.

Each call re-derives its decision from a fresh wholesale read of the table:

    lookup -> absent  -> create  -> verify
           -> found   -> foreign origin -> ForeignEntryConflict (no write)
                      -> same target    -> no-op (no write)
                      -> other target   -> replace -> verify

Writes are never trusted on their synchronous response; the entry is read
back until it shows the desired target (read-modify-verify). Nothing is
cached between calls and no lock is taken, so an interrupted call is always
recovered by running it again.
"""

import time
from typing import Callable, Optional

from ..config import RetryPolicy
from ..core import get_logger, retry_transient
from ..core.errors import (
    ForeignEntryConflict,
    InvalidImportIdentity,
    PropagationTimeout,
    RouteAlreadyExists,
    RouteError,
    RouteNotFound,
    RouteTableNotFound,
)
from ..models import (
    Action,
    Destination,
    ObservedRoute,
    ReconcileResult,
    RouteSpec,
    RouteState,
)
from .identity import parse_route_id
from .route_table import RouteTableBackend

logger = get_logger("reconciler")

SETTLED_STATES = (RouteState.ACTIVE, RouteState.BLACKHOLE)


class RouteReconciler:
    """Create, replace, delete and describe a single route entry.

    Args:
        table: RouteTableBackend used for every remote call
        retry_policy: Backoff for transient errors and post-write polling
        sleep: Injectable sleep, for zero-wait tests
        clock: Injectable monotonic clock for the poll budget
        on_status: Optional progress callback (e.g. a spinner)
    """

    def __init__(
        self,
        table: RouteTableBackend,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.table = table
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep
        self.clock = clock
        self._on_status = on_status
        self._last_seen: Optional[ObservedRoute] = None

    def _status(self, msg: str):
        logger.debug(msg)
        if self._on_status:
            self._on_status(msg)

    # Remote calls, each retried on transient errors

    @retry_transient
    def _list_routes(self, route_table_id: str) -> list[ObservedRoute]:
        return self.table.list_routes(route_table_id)

    @retry_transient
    def _create_route(self, spec: RouteSpec) -> None:
        self.table.create_route(spec.route_table_id, spec.destination, spec.target)

    @retry_transient
    def _replace_route(self, spec: RouteSpec) -> None:
        self.table.replace_route(spec.route_table_id, spec.destination, spec.target)

    @retry_transient
    def _delete_route(self, route_table_id: str, destination: Destination) -> None:
        self.table.delete_route(route_table_id, destination)

    # Reads

    def lookup(
        self, route_table_id: str, destination: Destination
    ) -> Optional[ObservedRoute]:
        """Find the entry for a destination in one wholesale read.

        Raises RouteTableNotFound when the table itself is gone.
        """
        matches = [
            route
            for route in self._list_routes(route_table_id)
            if route.destination.kind is destination.kind
            and route.destination.value == destination.value
        ]
        if len(matches) > 1:
            logger.warning(
                "Consistency anomaly: %d entries for %s in %s, using the first",
                len(matches),
                destination,
                route_table_id,
            )
        found = matches[0] if matches else None
        if found is not None:
            self._last_seen = found
        return found

    def describe(
        self, route_table_id: str, destination: Destination
    ) -> Optional[ObservedRoute]:
        """Current entry for a destination, or None if it or its table is gone."""
        try:
            return self.lookup(route_table_id, destination)
        except RouteTableNotFound:
            logger.info("Route table %s not found", route_table_id)
            return None

    def plan(self, spec: RouteSpec) -> Action:
        """Decision apply() would take right now, without writing."""
        return self.decide(spec, self.lookup(spec.route_table_id, spec.destination))

    def diff(
        self, spec: RouteSpec, observed: Optional[ObservedRoute]
    ) -> dict[str, tuple[str, str]]:
        """Attributes where desired and observed differ: name -> (desired, observed)."""
        observed_attrs = observed.attributes() if observed else {}
        desired = {
            "route_table_id": spec.route_table_id,
            spec.destination.kind.value: spec.destination.value,
            spec.target.kind.value: spec.target.id,
        }
        changes = {}
        for name, want in desired.items():
            have = observed_attrs.get(name, "")
            if want != have:
                changes[name] = (want, have)
        return changes

    def decide(self, spec: RouteSpec, observed: Optional[ObservedRoute]) -> Action:
        """Action for ``spec`` given one snapshot of its entry. No I/O.

        Raises ForeignEntryConflict when the entry was not created by CreateRoute.
        """
        if observed is None:
            return Action.CREATE
        if not observed.is_managed:
            raise ForeignEntryConflict(
                f"Route {spec.route_id} has origin {observed.origin.value} "
                "and is not managed by CreateRoute; refusing to modify it",
                observed=observed,
            )
        if observed.points_to(spec.target):
            return Action.NOOP
        return Action.REPLACE

    # Writes

    def apply(
        self, spec: RouteSpec, previous: Optional[RouteSpec] = None
    ) -> ReconcileResult:
        """Create or update the entry so it matches ``spec``.

        ``previous`` is the last applied spec; if it named another table or
        destination, that entry is deleted first since the lookup key
        cannot change in place.
        """
        self._last_seen = None
        try:
            if previous is not None and (
                previous.route_table_id != spec.route_table_id
                or previous.destination != spec.destination
            ):
                self._status(f"Destination changed, removing {previous.route_id}")
                self.delete(previous.route_table_id, previous.destination)
                self._last_seen = None

            self._status(f"Looking up {spec.route_id}")
            observed = self.lookup(spec.route_table_id, spec.destination)
            action = self.decide(spec, observed)

            if action is Action.NOOP:
                logger.info("%s already points to %s", spec.route_id, spec.target)
                return ReconcileResult(action=action, route=observed)

            if action is Action.CREATE:
                self._status(f"Creating {spec.route_id} -> {spec.target}")
                try:
                    self._create_route(spec)
                except RouteAlreadyExists:
                    # A retried create whose first attempt landed, or another
                    # writer since our lookup: decide again from a fresh read
                    self._status(f"{spec.route_id} already exists, re-reading")
                    fresh = self.lookup(spec.route_table_id, spec.destination)
                    retry_action = self.decide(spec, fresh)
                    if retry_action is Action.REPLACE:
                        self._replace_route(spec)
                        action = Action.REPLACE
                    elif retry_action is Action.CREATE:
                        self._create_route(spec)
            else:
                self._status(
                    f"Replacing {spec.route_id}: {observed.target} -> {spec.target}"
                )
                self._replace_route(spec)

            route = self._wait_for_target(spec)
            logger.info(
                "%s %s -> %s (%s)",
                action.value,
                spec.route_id,
                spec.target,
                route.state.value,
            )
            return ReconcileResult(action=action, route=route)
        except RouteError as e:
            if e.observed is None:
                e.observed = self._last_seen
            raise

    def _wait_for_target(self, spec: RouteSpec) -> ObservedRoute:
        """Poll until the entry shows the desired target in a settled state.

        A table deleted meanwhile raises RouteTableNotFound right away.
        """
        deadline = self.clock() + self.retry_policy.poll_timeout
        attempt = 1
        while True:
            observed = self.lookup(spec.route_table_id, spec.destination)
            if (
                observed is not None
                and observed.points_to(spec.target)
                and observed.state in SETTLED_STATES
            ):
                return observed
            if self.clock() >= deadline:
                raise PropagationTimeout(
                    f"Route {spec.route_id} -> {spec.target} not visible after "
                    f"{self.retry_policy.poll_timeout:.0f}s",
                    observed=observed,
                )
            delay = self.retry_policy.delay(attempt)
            self._status(f"Waiting for {spec.route_id} to propagate")
            self.sleep(delay)
            attempt += 1

    def delete(self, route_table_id: str, destination: Destination) -> ReconcileResult:
        """Delete the entry; an entry or table that is already gone is success."""
        observed = self.describe(route_table_id, destination)
        if observed is None:
            logger.info("%s_%s already absent", route_table_id, destination)
            return ReconcileResult(action=Action.NOOP)
        if not observed.is_managed:
            raise ForeignEntryConflict(
                f"Route {observed.route_id} has origin {observed.origin.value}; "
                "refusing to delete it",
                observed=observed,
            )

        self._status(f"Deleting {observed.route_id}")
        try:
            self._delete_route(route_table_id, destination)
        except RouteNotFound:
            logger.info("%s vanished before delete", observed.route_id)
            return ReconcileResult(action=Action.DELETE)
        except RouteError as e:
            if e.observed is None:
                e.observed = observed
            raise

        if self.describe(route_table_id, destination) is not None:
            logger.warning(
                "%s still visible after delete, assuming propagation delay",
                observed.route_id,
            )
        return ReconcileResult(action=Action.DELETE)

    # Import

    def import_route(self, raw_identity: str) -> RouteSpec:
        """Resolve ``<route-table-id>_<destination>`` to the spec of the live entry."""
        route_table_id, destination = parse_route_id(raw_identity)
        observed = self.describe(route_table_id, destination)
        if observed is None:
            raise RouteNotFound(f"Route {raw_identity} not found")
        target = observed.target
        if target is None:
            raise InvalidImportIdentity(
                f"Route {raw_identity} has no target to import", observed=observed
            )
        return RouteSpec(
            route_table_id=route_table_id, destination=destination, target=target
        )

