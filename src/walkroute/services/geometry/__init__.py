"""Geometry resource access and composition."""

from .fetcher import GeometryFetcher
from .resolver import SegmentResolver, split_references
from .store import FileGeometryStore, GeometryStore, HttpGeometryStore, ResourceMissing, build_store

__all__ = [
    "GeometryFetcher",
    "SegmentResolver",
    "split_references",
    "GeometryStore",
    "FileGeometryStore",
    "HttpGeometryStore",
    "ResourceMissing",
    "build_store",
]
