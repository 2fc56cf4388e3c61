"""One module per external tender feed. Order here is scrape order."""

from . import etenders, nocopo, publicprocurement, tendersnigeria

ALL_SOURCES = [
    publicprocurement.SOURCE,
    tendersnigeria.SOURCE,
    etenders.SOURCE,
    nocopo.SOURCE,
]

__all__ = ["ALL_SOURCES"]
