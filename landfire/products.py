"""
Product Catalog
===============

LANDFIRE data products as published by the LFPS ``products`` endpoint, and
helpers to pick the ones a job should request.

Example
-------
::

    from landfire import Landfire

    lf = Landfire()
    fuels = lf.products(name="13 Anderson Fire Behavior Fuel Models")
    for p in fuels:
        print(p)

See Also
--------
:class:`landfire.job.Job` : Jobs are built from a list of products
"""

from collections import namedtuple

LEGACY_EDITIONS = ("2019", "2020", "2022")


class Product(namedtuple("Product", ["name", "theme", "layer", "version", "conus", "ak", "hi", "geo_areas"])):
    """
    A LANDFIRE data product.

    Attributes
    ----------
    name : str
        Product name, e.g. ``'13 Anderson Fire Behavior Fuel Models'``.
    theme : str
        Product theme, e.g. ``'Fuel'``.
    layer : str
        Layer code sent to the service, e.g. ``'240FBFM13'``.
    version : str
        LANDFIRE version, e.g. ``'2.4.0'``.
    conus, ak, hi : bool
        Availability in the contiguous US, Alaska and Hawaii.
    geo_areas : str
        Service description of the covered areas.
    """
    __slots__ = ()

    @classmethod
    def from_json(cls, obj):
        """
        Build a product from one entry of the ``products`` response.

        Parameters
        ----------
        obj : dict
            Entry with ``productName``, ``theme``, ``layerName``, ``version``,
            ``conus``, ``ak``, ``hi`` and ``geoAreas`` keys.

        Returns
        -------
        Product
        """
        return cls(
            name=str(obj["productName"]),
            theme=str(obj.get("theme") or ""),
            layer=str(obj["layerName"]),
            version=str(obj.get("version") or ""),
            conus=bool(obj.get("conus")),
            ak=bool(obj.get("ak")),
            hi=bool(obj.get("hi")),
            geo_areas=str(obj.get("geoAreas") or ""),
        )

    def __str__(self):
        regions = " ".join(r for r in ("conus", "ak", "hi") if getattr(self, r))
        return f"Product: {self.name} {self.theme} {self.layer}, {self.version} [{regions}] {self.geo_areas}".rstrip()


def parse_products(body):
    """Parse the decoded ``products`` response, sorted by product name."""
    if not isinstance(body, dict) or not isinstance(body.get("products"), list):
        raise ValueError(f"Unexpected products response: {body!r:.200}")
    return sorted((Product.from_json(p) for p in body["products"]), key=lambda p: p.name)


def filter_products(products, only_latest=True, **criteria):
    """
    Filter products by field values.

    Parameters
    ----------
    products : iterable of Product
        Products to filter.
    only_latest : bool, optional
        Keep only the most recent version of each product name, and drop the
        2019, 2020 and 2022 legacy editions. Default is ``True``.
    **criteria
        Field filters. Boolean fields (``conus``, ``ak``, ``hi``) match
        exactly; string fields match by substring, so ``name="Vegetation"``
        selects every product with "Vegetation" in its name.

    Returns
    -------
    list of Product

    Raises
    ------
    ValueError
        If a criterion does not name a product field.
    """
    unknown = set(criteria) - set(Product._fields)
    if unknown:
        raise ValueError(f"Unknown product fields: {sorted(unknown)}. Valid fields are: {', '.join(Product._fields)}")

    def matches(product):
        for field, wanted in criteria.items():
            value = getattr(product, field)
            if isinstance(value, bool):
                if value != wanted:
                    return False
            elif str(wanted) not in value:
                return False
        return True

    out = [p for p in products if matches(p)]
    if only_latest:
        latest = {}
        for p in out:
            latest[p.name] = max(latest.get(p.name, p.version), p.version)
        out = [
            p for p in out
            if p.version == latest[p.name] and not any(year in p.name for year in LEGACY_EDITIONS)
        ]
    return out
