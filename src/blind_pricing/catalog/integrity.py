"""
Catalog Integrity Check - verifies the reference data the engine relies on.

Produces a report in the same shape as a build report:
status / metrics / warnings / errors. Errors are invariant violations that
would misprice a customer; warnings are valid but notable states, such as
a price band that only covers a subset of the band grid.
"""
import json
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Optional

from .repository import CatalogRepository

logger = logging.getLogger(__name__)


def _check_band_table(bands, label: str, report: dict):
    if not bands:
        report["errors"].append(f"No {label} bands configured")
        return

    mm_counts = Counter(b.mm for b in bands)
    for mm, count in sorted(mm_counts.items()):
        if count > 1:
            report["errors"].append(f"Duplicate {label} band size {mm}mm ({count} rows)")

    # Ordered by inches, mm must never go backwards.
    ordered = sorted(bands, key=lambda b: (b.inches, b.mm))
    for prev, curr in zip(ordered, ordered[1:]):
        if curr.mm < prev.mm:
            report["errors"].append(
                f"{label.capitalize()} bands not monotonic: {prev.mm}mm={prev.inches}in "
                f"but {curr.mm}mm={curr.inches}in"
            )


def check_catalog(repository: CatalogRepository, report_path: Optional[Path] = None) -> dict:
    """
    Check the catalog's invariants.

    Args:
        repository: Catalog to inspect
        report_path: Optional path to write the JSON report to

    Returns:
        Report dictionary
    """
    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "metrics": {},
        "warnings": [],
        "errors": [],
    }

    width_bands = repository.list_width_bands()
    height_bands = repository.list_height_bands()
    price_bands = repository.list_price_bands()

    report["metrics"]["width_bands"] = len(width_bands)
    report["metrics"]["height_bands"] = len(height_bands)
    report["metrics"]["price_bands"] = len(price_bands)

    _check_band_table(width_bands, "width", report)
    _check_band_table(height_bands, "height", report)

    width_ids = {b.id for b in width_bands}
    height_ids = {b.id for b in height_bands}

    cells = repository.list_price_cells_for_bands([b.id for b in price_bands])
    report["metrics"]["price_cells"] = len(cells)

    triples = Counter((c.price_band_id, c.width_band_id, c.height_band_id) for c in cells)
    for triple, count in triples.items():
        if count > 1:
            report["errors"].append(f"Duplicate price cell {triple} ({count} rows)")

    coverage = {}
    for band in price_bands:
        band_cells = [c for c in cells if c.price_band_id == band.id]
        for cell in band_cells:
            if cell.width_band_id not in width_ids:
                report["errors"].append(f"{band.name}: cell references unknown width band {cell.width_band_id}")
            if cell.height_band_id not in height_ids:
                report["errors"].append(f"{band.name}: cell references unknown height band {cell.height_band_id}")
            if cell.price < 0:
                report["errors"].append(f"{band.name}: negative price {cell.price}")

        used_w = {c.width_band_id for c in band_cells}
        used_h = {c.height_band_id for c in band_cells}
        expected = len(used_w) * len(used_h)
        coverage[band.name] = {
            "cells": len(band_cells),
            "width_bands": len(used_w),
            "height_bands": len(used_h),
        }
        if not band_cells:
            report["warnings"].append(f"{band.name} has no price cells (no starting price)")
        elif len(set((c.width_band_id, c.height_band_id) for c in band_cells)) < expected:
            report["warnings"].append(
                f"{band.name} covers {len(band_cells)} of {expected} cells in its band subset"
            )
    report["metrics"]["price_band_coverage"] = coverage

    # Customization pricing: one fixed entry and one entry per width band at most.
    options = {o.id: o for o in repository.list_customization_options()}
    entry_keys = Counter(
        (e.customization_option_id, e.width_band_id) for e in repository.list_customization_pricing()
    )
    report["metrics"]["customization_options"] = len(options)
    for (option_id, width_band_id), count in entry_keys.items():
        option = options.get(option_id)
        label = f"{option.category}/{option.option_id}" if option else option_id
        if option is None:
            report["errors"].append(f"Pricing entry for unknown customization option {option_id}")
        if width_band_id is not None and width_band_id not in width_ids:
            report["errors"].append(f"{label}: pricing references unknown width band {width_band_id}")
        if count > 1:
            kind = "fixed" if width_band_id is None else f"width band {width_band_id}"
            report["errors"].append(f"{label}: {count} pricing entries for {kind}")

    unpriced = [
        f"{o.category}/{o.option_id}" for o in options.values()
        if not any(key[0] == o.id for key in entry_keys)
    ]
    if unpriced:
        report["warnings"].append(f"{len(unpriced)} customization options have no pricing: {', '.join(unpriced)}")

    # Products pointing at missing price bands cannot be priced.
    band_ids = {b.id for b in price_bands}
    products = repository.list_products()
    report["metrics"]["products"] = len(products)
    unpriced_products = [p.id for p in products if not p.price_band_id]
    if unpriced_products:
        report["warnings"].append(f"{len(unpriced_products)} products have no price band")
    for product in products:
        if product.price_band_id and product.price_band_id not in band_ids:
            report["errors"].append(f"Product {product.id} references unknown price band {product.price_band_id}")

    report["status"] = "failed" if report["errors"] else "success"
    for msg in report["errors"]:
        logger.error(msg)
    for msg in report["warnings"]:
        logger.warning(msg)

    if report_path is not None:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, 'w') as f:
            json.dump(report, f, indent=2)
        logger.info("Integrity report saved to %s", report_path)

    return report
