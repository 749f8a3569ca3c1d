#!/usr/bin/env python3
"""
Определение региона по координатам.

Использование:
    python scripts/resolve_region.py 23.8103 90.4125
    python scripts/resolve_region.py 22.3569 91.7832 --assigned Dhaka
    python scripts/resolve_region.py 23.81 90.41 --regions path/to/regions.yaml
"""

import sys
import argparse
from pathlib import Path

# Добавляем корень проекта в путь
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from contracts.geo_dto import GeoPoint
from medtrace.domain.exceptions import RegionRegistryError
from medtrace.geo import DiversionDetector, GeolocationResolver, RegionRegistry


def main():
    parser = argparse.ArgumentParser(description="Резолвинг GPS-точки в регион")
    parser.add_argument("latitude", type=float)
    parser.add_argument("longitude", type=float)
    parser.add_argument("--assigned", help="Регион назначения (проверка отклонения)")
    parser.add_argument("--regions", type=Path, help="YAML реестра регионов")
    args = parser.parse_args()

    try:
        registry = RegionRegistry.from_yaml(args.regions)
    except RegionRegistryError as e:
        print(f"[ERROR] {e}")
        return 1

    point = GeoPoint(latitude=args.latitude, longitude=args.longitude)
    match = GeolocationResolver(registry).resolve(point)

    if match.is_known:
        print(f"Регион: {match.name} ({match.distance_km:.2f} км до центра)")
    else:
        print(f"Регион: {match.name}")

    if args.assigned:
        result = DiversionDetector(registry).detect(args.assigned, match.name, point)
        if result.diverted:
            distance = f"{result.distance_km:.2f} км" if result.distance_km is not None else "n/a"
            print(f"[ALERT] Отклонение: назначен {result.assigned_region}, сейчас {result.current_region} ({distance})")
        else:
            print("Отклонения нет")

    return 0


if __name__ == "__main__":
    sys.exit(main())
