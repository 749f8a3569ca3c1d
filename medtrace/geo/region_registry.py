"""
Реестр регионов.

Статический упорядоченный список Region из YAML. Порядок записей важен:
при равных расстояниях резолвер выбирает регион, стоящий раньше.
"""

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

import yaml
from loguru import logger
from pydantic import ValidationError

from config.settings import REGIONS_FILE
from contracts.geo_dto import Region
from ..domain.exceptions import RegionRegistryError


class RegionRegistry:
    """
    Неизменяемый реестр регионов.

    Поиск линейный: на десятках регионов этого достаточно.
    """

    # Кеш загруженных файлов (путь -> реестр)
    _cache: Dict[Path, "RegionRegistry"] = {}

    def __init__(self, regions: Sequence[Region]):
        names = [region.name for region in regions]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise RegionRegistryError(
                message=f"Дублирующиеся регионы: {sorted(duplicates)}",
                component="RegionRegistry",
            )
        self._regions = tuple(regions)
        self._by_name = {region.name: region for region in self._regions}

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None, use_cache: bool = True) -> "RegionRegistry":
        """
        Загружает реестр из YAML.

        Формат:
            regions:
              - {name: Dhaka, lat: 23.8103, lon: 90.4125, radius_km: 50}

        Args:
            path: Путь к YAML (по умолчанию REGIONS_FILE)
            use_cache: Переиспользовать уже загруженный реестр

        Returns:
            RegionRegistry

        Raises:
            RegionRegistryError: Файл не найден или формат неверный
        """
        path = Path(path or REGIONS_FILE)
        if use_cache and path in cls._cache:
            return cls._cache[path]

        if not path.exists():
            raise RegionRegistryError(message=f"Файл реестра не найден: {path}", component="RegionRegistry")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise RegionRegistryError(
                message=f"Не удалось прочитать реестр: {path}",
                component="RegionRegistry",
                original_error=e,
            )

        registry = cls.from_entries(data.get("regions") or [])
        logger.info(f"[RegionRegistry] Загружено регионов: {len(registry)} из {path.name}")

        if use_cache:
            cls._cache[path] = registry
        return registry

    @classmethod
    def from_entries(cls, entries: List[dict]) -> "RegionRegistry":
        """Строит реестр из списка {name, lat, lon, radius_km}."""
        regions = []
        for index, entry in enumerate(entries):
            try:
                regions.append(Region(
                    name=entry["name"],
                    latitude=entry["lat"],
                    longitude=entry["lon"],
                    radius_km=entry["radius_km"],
                ))
            except (KeyError, TypeError, ValidationError) as e:
                raise RegionRegistryError(
                    message=f"Некорректная запись региона #{index}: {entry!r}",
                    component="RegionRegistry",
                    original_error=e,
                )
        return cls(regions)

    @classmethod
    def clear_cache(cls) -> None:
        cls._cache.clear()

    def get(self, name: str) -> Optional[Region]:
        return self._by_name.get(name)

    @property
    def names(self) -> List[str]:
        return [region.name for region in self._regions]

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
