from __future__ import annotations

"""City model parse pipeline.

This module provides CityModelParser – the driver that walks every geometry
of every city object through the BoundaryWalker and collects the result in a
single GeometryData buffer.

Objects are independent of each other, so with ``max_workers > 1`` they are
processed on a thread pool, each task filling a private buffer that is
concatenated afterwards in submission order.  Only the semantic and LOD
registries are shared between workers; both serialise registration
internally.

Geometry-level failures (unknown owner, unknown object type in strict mode,
malformed boundaries) never abort the pass.  They are collected as
ParseIssue records so that callers can report partial success.
"""

import time
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .buffer import GeometryData
from .registry import LodRegistry, ObjectTypeRegistry, SemanticSurfaceRegistry
from .triangulate import PolygonTriangulator
from .walker import BoundaryWalker
from ..config import CityMeshConfig, get_config
from ..constants import WORKER_THREAD_PREFIX
from ..data_types import CityMeshError, CityModel, OwnerNotFoundError
from .. import get_logger

logger = get_logger(__name__)


@dataclass
class ParseIssue:
    """A failure recorded for one object (or one of its geometries)."""

    object_id: str
    geometry_index: Optional[int]
    error: Exception

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class ObjectOutcome:
    num_geometries: int = 0
    issues: List[ParseIssue] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class ParseResult:
    """Return type for CityModelParser.parse().

    Attributes
    ----------
    data : GeometryData
        Triangles emitted by the pass.  Valid even when the pass was
        cancelled or issues were recorded.
    issues : list[ParseIssue]
        Per-object / per-geometry failures.
    cancelled : bool
        True if the cancel event stopped the pass early.
    """

    data: GeometryData
    issues: List[ParseIssue] = field(default_factory=list)
    cancelled: bool = False
    num_objects: int = 0
    num_geometries: int = 0
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def num_triangles(self) -> int:
        return self.data.num_triangles

    def record(self, outcome: ObjectOutcome) -> None:
        self.num_objects += 1
        self.num_geometries += outcome.num_geometries
        self.issues.extend(outcome.issues)
        self.cancelled = self.cancelled or outcome.cancelled


class CityModelParser:
    """Drive a whole parsing pass over a CityModel.

    Usage
    -----
    >>> parser = CityModelParser(CityModel.from_dict(citymodel_json))
    >>> result = parser.parse()
    >>> arrays = result.data.to_arrays()
    """

    def __init__(
        self,
        model: CityModel,
        config: Optional[CityMeshConfig] = None,
        semantic_registry: Optional[SemanticSurfaceRegistry] = None,
        object_type_registry: Optional[ObjectTypeRegistry] = None,
        lod_registry: Optional[LodRegistry] = None,
        triangulator: Optional[PolygonTriangulator] = None,
    ) -> None:
        self.model = model
        self.config = config or get_config()

        parser_config = self.config.parser
        if semantic_registry is None:
            semantic_registry = SemanticSurfaceRegistry(color_seed=parser_config.semantic_color_seed)
        self.semantic_registry = semantic_registry
        self.object_type_registry = object_type_registry if object_type_registry is not None else ObjectTypeRegistry()
        self.lod_registry = lod_registry if lod_registry is not None else LodRegistry()
        self.triangulator = triangulator or PolygonTriangulator(config=self.config.triangulation)

        self.walker = BoundaryWalker(
            model,
            semantic_registry=self.semantic_registry,
            object_type_registry=self.object_type_registry,
            lod_registry=self.lod_registry,
            triangulator=self.triangulator,
            strict_object_types=parser_config.strict_object_types,
        )

    # ------------------------------------------------------------------
    def parse_object(
        self,
        object_id: str,
        data: GeometryData,
        cancel_event: Optional[threading.Event] = None,
    ) -> ObjectOutcome:
        """Walk every geometry of *object_id* into *data*."""
        outcome = ObjectOutcome()
        try:
            city_object = self.model.get_object(object_id)
        except OwnerNotFoundError as exc:
            logger.warning("Skipping %s: %s", object_id, exc)
            outcome.issues.append(ParseIssue(object_id, None, exc))
            return outcome

        for geometry_index, geometry in enumerate(city_object.geometries):
            if cancel_event is not None and cancel_event.is_set():
                outcome.cancelled = True
                break

            mark = len(data)
            try:
                self.walker.walk(geometry, object_id, geometry_index, data)
            except (CityMeshError, ValueError, IndexError, TypeError) as exc:
                # drop the partial output of the failed geometry
                data.truncate(mark)
                logger.warning("Geometry %d of %s failed: %s", geometry_index, object_id, exc)
                outcome.issues.append(ParseIssue(object_id, geometry_index, exc))
            outcome.num_geometries += 1

        return outcome

    def _parse_private(
        self,
        object_id: str,
        cancel_event: Optional[threading.Event],
    ) -> Tuple[GeometryData, ObjectOutcome]:
        data = GeometryData()
        return data, self.parse_object(object_id, data, cancel_event)

    # ------------------------------------------------------------------
    def parse(
        self,
        object_ids: Optional[Sequence[str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ParseResult:
        """Parse *object_ids* (default: every object in document order)."""
        start = time.perf_counter()
        ids = list(self.model.object_ids if object_ids is None else object_ids)
        result = ParseResult(data=GeometryData())
        workers = max(1, int(self.config.parser.max_workers))

        if workers == 1:
            for object_id in ids:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    break
                result.record(self.parse_object(object_id, result.data, cancel_event))
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=WORKER_THREAD_PREFIX) as executor:
                futures = [executor.submit(self._parse_private, object_id, cancel_event) for object_id in ids]
                for future in futures:
                    private, outcome = future.result()
                    result.data.extend(private)
                    result.record(outcome)

        result.elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Parsed %d objects / %d geometries -> %d triangles in %.1fms (%d issues%s)",
            result.num_objects, result.num_geometries, result.num_triangles,
            result.elapsed_ms, len(result.issues), ", cancelled" if result.cancelled else "",
        )
        return result


def parse_city_model(tree: Mapping[str, Any], config: Optional[CityMeshConfig] = None) -> ParseResult:
    """Build a CityModel from a decoded CityJSON *tree* and parse all of it."""
    return CityModelParser(CityModel.from_dict(tree), config=config).parse()
