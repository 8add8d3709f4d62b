import numbers
from decimal import Decimal

import pytest

from landfire.errors import InvalidAreaOfInterest
from landfire.utils.aoi import BoundingBox, bounding_box, normalize_area_of_interest


class BoundsGeometry:
    """Stand-in for a shapely geometry."""

    def __init__(self, bounds):
        self.bounds = bounds


class GeoInterfaceGeometry:
    def __init__(self, mapping):
        self.__geo_interface__ = mapping


def test_bounding_box_format():
    bbox = BoundingBox(xmin=-120.0, xmax=-110.0, ymin=35.0, ymax=40.0)
    assert normalize_area_of_interest(bbox) == "-120.0 35.0 -110.0 40.0"


def test_bounding_box_keeps_precision():
    bbox = BoundingBox(xmin=-105.69436, xmax=-105.052795, ymin=39.912888, ymax=40.26297)
    assert normalize_area_of_interest(bbox) == "-105.69436 39.912888 -105.052795 40.26297"


def test_integer_is_feature_id():
    assert normalize_area_of_interest(123) == "123"


def test_string_passes_through():
    assert normalize_area_of_interest("raw") == "raw"
    wkt = "POLYGON((-120 35, -110 35, -110 40, -120 40, -120 35))"
    assert normalize_area_of_interest(wkt) == wkt


def test_bool_is_rejected():
    with pytest.raises(InvalidAreaOfInterest):
        normalize_area_of_interest(True)


def test_shapely_style_bounds():
    geom = BoundsGeometry((-120.0, 35.0, -110.0, 40.0))
    assert bounding_box(geom) == BoundingBox(-120.0, -110.0, 35.0, 40.0)
    assert normalize_area_of_interest(geom) == "-120.0 35.0 -110.0 40.0"


def test_empty_geometry_is_rejected():
    nan = float("nan")
    with pytest.raises(InvalidAreaOfInterest, match="empty"):
        normalize_area_of_interest(BoundsGeometry((nan, nan, nan, nan)))


def test_geo_interface_polygon():
    geom = GeoInterfaceGeometry({
        "type": "Polygon",
        "coordinates": [[(-120.0, 35.0), (-110.0, 35.5), (-111.0, 40.0), (-120.0, 35.0)]],
    })
    assert normalize_area_of_interest(geom) == "-120.0 35.0 -110.0 40.0"


def test_geo_interface_feature_collection():
    geom = GeoInterfaceGeometry({
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-105.5, 39.9]}},
            {"type": "Feature", "geometry": {"type": "MultiPoint", "coordinates": [[-105.0, 40.3], [-105.2, 40.0]]}},
        ],
    })
    assert bounding_box(geom) == BoundingBox(-105.5, -105.0, 39.9, 40.3)


def test_geo_interface_bbox_member():
    geom = GeoInterfaceGeometry({"type": "Polygon", "bbox": [-120.0, 35.0, -110.0, 40.0], "coordinates": []})
    assert normalize_area_of_interest(geom) == "-120.0 35.0 -110.0 40.0"


@pytest.mark.parametrize("value", [
    object(),
    [-120.0, 35.0, -110.0, 40.0],
    None,
    GeoInterfaceGeometry({"type": "Polygon", "coordinates": []}),
    BoundsGeometry((1, 2, 3)),
])
def test_invalid_inputs(value):
    with pytest.raises(InvalidAreaOfInterest):
        normalize_area_of_interest(value)


class MapZone:
    """Integer-like zone id that is not an ``int`` subclass."""

    def __init__(self, value):
        self.value = value

    def __int__(self):
        return self.value


numbers.Integral.register(MapZone)


def test_any_integral_is_feature_id():
    assert normalize_area_of_interest(MapZone(123)) == "123"


def test_decimal_bounding_box_keeps_precision():
    bbox = BoundingBox(Decimal("-105.694360"), Decimal("-105.052795"), Decimal("39.912888"), Decimal("40.262970"))
    assert normalize_area_of_interest(bbox) == "-105.694360 39.912888 -105.052795 40.262970"


def test_decimal_nan_is_empty():
    nan = Decimal("NaN")
    with pytest.raises(InvalidAreaOfInterest, match="empty"):
        normalize_area_of_interest(BoundingBox(nan, nan, nan, nan))
