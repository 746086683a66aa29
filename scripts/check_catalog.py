#!/usr/bin/env python
"""
Catalog check pipeline - loads the catalog, checks its invariants and runs
the pricing tests.

Usage:
    python scripts/check_catalog.py [catalog_dir]
"""
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from blind_pricing.catalog import DataFrameCatalogRepository, check_catalog
from blind_pricing.config import get_settings, setup_logging
from blind_pricing.engine import CatalogUnavailableError


def main():
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)
    catalog_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else settings.catalog_dir

    print("=" * 60)
    print("BLIND PRICING CATALOG CHECK")
    print("=" * 60)
    print()

    print(f"[1/2] Checking catalog in {catalog_dir}...")
    try:
        repository = DataFrameCatalogRepository.from_csv_dir(catalog_dir)
    except CatalogUnavailableError as e:
        print(f"\n❌ CATALOG UNAVAILABLE: {e}")
        sys.exit(1)

    report = check_catalog(repository, Path(__file__).parent.parent / 'reports' / 'catalog_report.json')

    if report["status"] != "success":
        print("\n❌ CHECK FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    print("[2/2] Running pricing tests...")

    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ CHECK COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Width bands: {report['metrics']['width_bands']}")
    print(f"  Height bands: {report['metrics']['height_bands']}")
    print(f"  Price cells: {report['metrics']['price_cells']}")
    print(f"  Products: {report['metrics']['products']}")
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")
    print()
    print("Price Band Coverage:")
    for name, stats in report['metrics'].get('price_band_coverage', {}).items():
        print(f"  {name}: {stats['cells']} cells ({stats['width_bands']} × {stats['height_bands']} bands)")


if __name__ == "__main__":
    main()
