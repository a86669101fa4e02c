"""Client for the external ranked path-search binaries."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...config import settings
from ...models.domain import RouteCandidate, Tier
from ..geometry.resolver import split_references

logger = logging.getLogger(__name__)

WEIGHT_COUNT = 13
# Upper bound on the search binary's stdout, in characters.
MAX_OUTPUT_CHARS = 10 * 1024 * 1024


class UpstreamUnavailable(RuntimeError):
    """The search collaborator failed; no route list is available for this search."""


class RawRouteRecord(BaseModel):
    """One record of the search binary's JSON array. ``totalTime`` is in seconds."""

    model_config = ConfigDict(extra="ignore")

    total_distance: float = Field(0.0, alias="totalDistance", ge=0)
    total_time_seconds: float = Field(0.0, alias="totalTime", ge=0)
    total_wait_time: float = Field(0.0, alias="totalWaitTime", ge=0)
    user_pref: str = Field(..., alias="userPref")
    route_type: int = Field(int(Tier.BEST_ENUMERATED), alias="routeType")
    has_signal: Optional[int] = Field(None, alias="hasSignal")
    signal_edge_idx: Optional[int] = Field(None, alias="signalEdgeIdx")

    @field_validator("total_distance", "total_time_seconds", "total_wait_time", "route_type", mode="before")
    @classmethod
    def _null_as_default(cls, value, info):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def tier(self) -> Optional[Tier]:
        try:
            return Tier(self.route_type)
        except ValueError:
            return None

    def to_candidate(self) -> RouteCandidate:
        return RouteCandidate(
            total_distance=self.total_distance,
            total_time=self.total_time_seconds / 60,
            total_wait_time=self.total_wait_time,
            segment_refs=tuple(split_references(self.user_pref)),
            tier=self.tier,
            has_signal=bool(self.has_signal) if self.has_signal is not None else None,
            signal_edge_index=self.signal_edge_idx,
        )


def parse_search_output(output: str) -> list[RouteCandidate]:
    try:
        data = json.loads(output)
    except json.JSONDecodeError as exc:
        raise UpstreamUnavailable(f"Path search returned malformed output: {exc}") from exc
    if not isinstance(data, list):
        raise UpstreamUnavailable("Path search output is not a JSON array.")
    try:
        return [RawRouteRecord.model_validate(record).to_candidate() for record in data]
    except (ValidationError, ValueError) as exc:
        raise UpstreamUnavailable(f"Path search returned an invalid route record: {exc}") from exc


class SearchClient:
    """Runs the cost generator once, then the ranked path search."""

    def __init__(
        self,
        workdir: Path | None = None,
        cost_binary: str | None = None,
        search_binary: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.workdir = workdir or settings.search_workdir
        self.cost_binary = cost_binary or settings.cost_binary
        self.search_binary = search_binary or settings.search_binary
        self.timeout = timeout if timeout is not None else settings.search_timeout_seconds

    def _command(self, binary: str, args: Sequence[object]) -> list[str]:
        path = Path(binary)
        if not path.is_absolute():
            path = self.workdir / path
        return [str(path), *(str(arg) for arg in args)]

    def _run(self, binary: str, args: Sequence[object]) -> str:
        command = self._command(binary, args)
        try:
            completed = subprocess.run(
                command,
                cwd=self.workdir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError as exc:
            raise UpstreamUnavailable(f"Search binary not found: {command[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise UpstreamUnavailable(f"{binary} timed out after {self.timeout:.0f}s") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or "").strip()
            raise UpstreamUnavailable(f"{binary} exited with status {exc.returncode}: {detail}") from exc
        except OSError as exc:
            raise UpstreamUnavailable(f"Failed to run {binary}: {exc}") from exc
        if len(completed.stdout) > MAX_OUTPUT_CHARS:
            raise UpstreamUnavailable(f"{binary} output exceeds {MAX_OUTPUT_CHARS} characters")
        return completed.stdout

    def search(
        self,
        weights: Sequence[float],
        start_node: int,
        end_node: int,
        walking_speed: float | None = None,
    ) -> list[RouteCandidate]:
        if len(weights) != WEIGHT_COUNT:
            raise ValueError(f"Expected {WEIGHT_COUNT} edge weights, got {len(weights)}.")
        speed = walking_speed if walking_speed is not None else settings.default_walking_speed

        start_time = time.time()
        self._run(self.cost_binary, [*weights, start_node, end_node])
        output = self._run(self.search_binary, [start_node, end_node, speed])
        routes = parse_search_output(output)

        elapsed = time.time() - start_time
        logger.info(f"Path search {start_node}->{end_node} returned {len(routes)} routes in {elapsed:.2f}s")
        for index, route in enumerate(routes, start=1):
            tier = route.tier.label if route.tier is not None else "unassigned"
            logger.debug(
                f"Route {index}: {route.total_time:.2f} min, {route.total_distance:.2f} m, "
                f"wait {route.total_wait_time:.2f} min, tier {tier}"
            )
        return routes

    def check_health(self) -> bool:
        """True when both binaries exist and are executable."""
        for binary in (self.cost_binary, self.search_binary):
            path = Path(self._command(binary, [])[0])
            if not path.is_file() or not os.access(path, os.X_OK):
                return False
        return True
