"""
Area of interest normalization.

LFPS takes the area of interest of a job as a single string: a map zone or
other pre-registered feature id, a bounding box ``"xmin ymin xmax ymax"`` in
geographic coordinates, or a service-specific string passed through as-is.
:func:`normalize_area_of_interest` turns the accepted Python inputs into that
string.
"""

from collections import namedtuple
from decimal import Decimal
from numbers import Integral, Real

from landfire.errors import InvalidAreaOfInterest

BoundingBox = namedtuple("BoundingBox", ["xmin", "xmax", "ymin", "ymax"])


def _is_number(value):
    return isinstance(value, (Real, Decimal)) and not isinstance(value, bool)


def _is_nan(value):
    if isinstance(value, Decimal):
        return value.is_nan()
    return value != value


def _bbox_from_bounds(bounds, geometry):
    # shapely ordering: (minx, miny, maxx, maxy)
    try:
        minx, miny, maxx, maxy = bounds
    except (TypeError, ValueError):
        raise InvalidAreaOfInterest(geometry, f"bounds {bounds!r} are not (minx, miny, maxx, maxy)")
    return BoundingBox(minx, maxx, miny, maxy)


def _iter_positions(coordinates):
    if isinstance(coordinates, (list, tuple)) and coordinates and all(_is_number(c) for c in coordinates):
        yield coordinates
    elif isinstance(coordinates, (list, tuple)):
        for item in coordinates:
            yield from _iter_positions(item)


def _iter_geojson_positions(obj):
    kind = obj.get("type")
    if kind == "FeatureCollection":
        for feature in obj.get("features") or ():
            yield from _iter_geojson_positions(feature)
    elif kind == "Feature":
        if obj.get("geometry"):
            yield from _iter_geojson_positions(obj["geometry"])
    elif kind == "GeometryCollection":
        for geometry in obj.get("geometries") or ():
            yield from _iter_geojson_positions(geometry)
    else:
        yield from _iter_positions(obj.get("coordinates"))


def _bbox_from_geo_interface(mapping, geometry):
    if not isinstance(mapping, dict):
        raise InvalidAreaOfInterest(geometry, "__geo_interface__ is not a mapping")
    if mapping.get("bbox"):
        bbox = mapping["bbox"]
        # GeoJSON bbox: (west, south, east, north), possibly with z values
        half = len(bbox) // 2
        return BoundingBox(bbox[0], bbox[half], bbox[1], bbox[half + 1])
    xs, ys = [], []
    for position in _iter_geojson_positions(mapping):
        if len(position) < 2:
            raise InvalidAreaOfInterest(geometry, f"position {position!r} has fewer than two coordinates")
        xs.append(position[0])
        ys.append(position[1])
    if not xs:
        raise InvalidAreaOfInterest(geometry, "geometry has no coordinates")
    return BoundingBox(min(xs), max(xs), min(ys), max(ys))


def bounding_box(geometry):
    """
    Reduce a geometry to its bounding box.

    Accepts a :class:`BoundingBox`, an object with shapely-style ``bounds``
    or an object implementing ``__geo_interface__``.

    :raises InvalidAreaOfInterest: if no bounding box can be derived
    """
    if isinstance(geometry, BoundingBox):
        bbox = geometry
    elif hasattr(geometry, "bounds"):
        bbox = _bbox_from_bounds(geometry.bounds, geometry)
    elif hasattr(geometry, "__geo_interface__"):
        bbox = _bbox_from_geo_interface(geometry.__geo_interface__, geometry)
    else:
        raise InvalidAreaOfInterest(geometry)
    if not all(_is_number(v) for v in bbox):
        raise InvalidAreaOfInterest(geometry, f"bounding box {tuple(bbox)!r} is not numeric")
    # Empty shapely geometries report NaN bounds
    if any(_is_nan(v) for v in bbox):
        raise InvalidAreaOfInterest(geometry, "geometry is empty")
    return bbox


def format_bounding_box(bbox):
    return " ".join(str(v) for v in (bbox.xmin, bbox.ymin, bbox.xmax, bbox.ymax))


def normalize_area_of_interest(value):
    """
    Convert an area of interest to the LFPS wire string.

    - integer (any ``numbers.Integral``): a feature id such as a map zone, as a decimal string
    - ``str``: passed through unchanged
    - :class:`BoundingBox`: ``"xmin ymin xmax ymax"``, each number as ``str()`` renders it
    - geometry: reduced with :func:`bounding_box` and formatted as above

    :raises InvalidAreaOfInterest: for any other input
    """
    if isinstance(value, bool):
        raise InvalidAreaOfInterest(value, "booleans are not feature ids")
    if isinstance(value, Integral):
        return str(int(value))
    if isinstance(value, str):
        return value
    return format_bounding_box(bounding_box(value))
