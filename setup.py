import os.path
from setuptools import find_packages, setup


# Package data
# ------------
_author = "Landfire.py contributors"
_author_email = ""
_classifiers = [
    "Environment :: Console",
    "Framework :: Pytest",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Topic :: Scientific/Engineering :: GIS",
    "Development Status :: 3 - Alpha",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
_description = "LANDFIRE Product Service Python API"
_download_url = ""
_requirements = [
    "backoff",
    "importlib_resources",
    "PyYAML",
    "requests",
]
_extra_requirements = {
    "dev": [
        "mypy",
        "pytest",
        "responses",
        "types-requests",
        "types-PyYAML",
    ]
}
_keywords = ["landfire", "lfps", "wildfire", "fuels", "raster", "usgs"]
_license = "Apache License, Version 2.0"
_name = "landfire-py"
_python_requires = ">=3.10"
_url = "https://lfps.usgs.gov"
_version = "0.3.0"
_zip_safe = False

# Setup Metadata
# --------------


def _read(*rnames):
    with open(os.path.join(os.path.dirname(__file__), *rnames)) as f:
        return f.read()


_header = "*" * len(_name) + "\n" + _name + "\n" + "*" * len(_name)
_long_description = "\n\n".join([_header, _read("README.md")])

setup(
    author=_author,
    author_email=_author_email,
    classifiers=_classifiers,
    description=_description,
    download_url=_download_url,
    include_package_data=True,
    package_data={"landfire.data": ["*.yaml"]},
    install_requires=_requirements,
    extras_require=_extra_requirements,
    keywords=_keywords,
    license=_license,
    long_description=_long_description,
    long_description_content_type="text/markdown",
    name=_name,
    packages=find_packages(exclude=["test", "test.*"]),
    python_requires=_python_requires,
    url=_url,
    version=_version,
    zip_safe=_zip_safe,
)
