"""
Менеджер файлов MedTrace.

JSON-файлы выгрузок и файлового хранилища записей.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger

from ..domain.exceptions import StorageFileNotFoundError, StorageWriteError


class ProvenanceFileManager:
    """Менеджер JSON-файлов."""

    def save_json(self, data: Dict[str, Any], file_path: Path) -> Path:
        """
        Сохраняет данные в JSON файл.

        Запись через временный файл рядом и replace.

        Args:
            data: Данные для сохранения
            file_path: Путь для сохранения

        Returns:
            Путь к сохраненному файлу

        Raises:
            StorageWriteError: Если не удалось сохранить файл
        """
        file_path = Path(file_path)
        tmp_path = file_path.with_suffix(file_path.suffix + ".tmp")
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)

            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp_path.replace(file_path)

            logger.debug(f"[FileManager] Файл сохранен: {file_path}")
            return file_path

        except (IOError, OSError, TypeError, ValueError) as e:
            raise StorageWriteError(
                message=f"Не удалось сохранить JSON файл: {file_path}",
                component="ProvenanceFileManager",
                original_error=e,
            )

    def load_json(self, file_path: Path) -> Dict[str, Any]:
        """
        Загружает данные из JSON файла.

        Raises:
            StorageFileNotFoundError: Если файл не существует
            StorageWriteError: Если не удалось загрузить файл
        """
        file_path = Path(file_path)
        try:
            if not file_path.exists():
                raise StorageFileNotFoundError(
                    message=f"Файл не найден: {file_path}",
                    component="ProvenanceFileManager",
                )

            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            logger.debug(f"[FileManager] Файл загружен: {file_path}")
            return data

        except StorageFileNotFoundError:
            raise
        except (IOError, OSError, json.JSONDecodeError) as e:
            raise StorageWriteError(
                message=f"Не удалось загрузить JSON файл: {file_path}",
                component="ProvenanceFileManager",
                original_error=e,
            )

    def list_exports(self, directory_path: Path) -> List[Path]:
        """
        Файлы выгрузок custody в директории (по имени).
        """
        directory_path = Path(directory_path)
        if not directory_path.exists():
            return []
        return sorted(directory_path.glob("custody_chain_*.json"))
